# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Decide whether exchange rates may be fetched right now."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from travelfx.models.enums import ConnectionType, UpdatePolicy
from travelfx.schemas.settings import UpdateSettings

logger = logging.getLogger(__name__)

DEFAULT_PROBE_URL = "https://www.google.com/generate_204"
DEFAULT_PROBE_TIMEOUT = 3.0


@dataclass(frozen=True)
class NetworkState:
    """Result of a connectivity probe."""

    reachable: bool
    connection_type: ConnectionType = ConnectionType.UNKNOWN


UNREACHABLE = NetworkState(reachable=False)


class ConnectivityProbe(ABC):
    """Reports whether the network is reachable and over what."""

    @abstractmethod
    async def check(self) -> NetworkState:
        """Probe the network."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        pass


class HttpConnectivityProbe(ConnectivityProbe):
    """Sends a HEAD request to a well-known host.

    A server process cannot tell Wi-Fi from mobile data, so the connection
    type reported for a reachable network is configured.
    """

    def __init__(
        self,
        url: str = DEFAULT_PROBE_URL,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        connection_type: ConnectionType = ConnectionType.WIFI,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.connection_type = connection_type
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def check(self) -> NetworkState:
        client = await self._get_client()
        try:
            response = await client.head(self.url)
        except httpx.HTTPError as e:
            logger.info(f"Connectivity probe failed: {e}")
            return UNREACHABLE
        # Any HTTP answer proves the network path works.
        logger.debug(f"Connectivity probe answered {response.status_code}")
        return NetworkState(reachable=True, connection_type=self.connection_type)


class ReachabilityGate:
    """Combines the update policy with a connectivity probe.

    ``is_fetch_allowed`` always returns a bool; probe failures and timeouts
    count as unreachable.
    """

    def __init__(
        self, probe: ConnectivityProbe, timeout: float = DEFAULT_PROBE_TIMEOUT
    ) -> None:
        self.probe = probe
        self.timeout = timeout

    async def is_fetch_allowed(
        self, settings: UpdateSettings, force: bool = False
    ) -> bool:
        """Return True if a network fetch may be attempted now.

        Args:
            settings: Current update settings.
            force: Explicit "update now"; skips the policy but still needs
                a reachable network.
        """
        if settings.update_policy == UpdatePolicy.MANUAL and not force:
            logger.debug("Rate fetch skipped: update policy is manual")
            return False

        state = await self._probe()
        if not state.reachable:
            logger.info("Rate fetch skipped: network unreachable")
            return False
        if force:
            return True

        on_mobile = state.connection_type == ConnectionType.CELLULAR
        if settings.update_policy == UpdatePolicy.WIFI_ONLY:
            allowed = state.connection_type == ConnectionType.WIFI
        elif on_mobile:
            allowed = settings.allow_mobile_data
        else:
            allowed = True

        if not allowed:
            logger.info(
                f"Rate fetch skipped: policy {settings.update_policy.value} "
                f"does not allow {state.connection_type.value} connections"
            )
        return allowed

    async def _probe(self) -> NetworkState:
        try:
            return await asyncio.wait_for(self.probe.check(), timeout=self.timeout)
        except TimeoutError:
            logger.info(f"Connectivity probe timed out after {self.timeout}s")
            return UNREACHABLE
        except Exception as e:
            logger.warning(f"Connectivity probe raised: {e}")
            return UNREACHABLE

    async def close(self) -> None:
        """Close the probe."""
        await self.probe.close()
