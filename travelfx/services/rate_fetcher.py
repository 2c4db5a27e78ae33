# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Fetch a rate set by walking a chain of providers."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from travelfx.services.exceptions import AllProvidersExhausted, ProviderFetchFailed
from travelfx.services.providers import RateProvider, default_providers
from travelfx.services.rate_sets import RateSet

logger = logging.getLogger(__name__)

# Per provider attempt, in seconds
DEFAULT_PROVIDER_TIMEOUT = 5.0


@dataclass
class FetchedRates:
    """A rate set together with the provider that delivered it."""

    base_currency: str
    rates: RateSet
    provider: str


class ProviderChainFetcher:
    """Tries providers in order until one returns a valid rate set.

    There are no retries within a provider; moving on to the next source
    is the retry strategy.
    """

    def __init__(
        self,
        providers: Sequence[RateProvider] | None = None,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            providers: Providers in priority order; the built-in chain if None.
            timeout: Deadline for a single provider attempt in seconds.
            client: Optional shared HTTP client. One is created lazily
                otherwise and closed by :meth:`close`.
        """
        self.providers = list(providers) if providers is not None else default_providers()
        self.timeout = timeout
        self._http_client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch(self, base_currency: str) -> FetchedRates:
        """Fetch the latest rates for ``base_currency``.

        Raises:
            AllProvidersExhausted: If no provider produced a valid set.
        """
        failures: list[ProviderFetchFailed] = []
        for provider in self.providers:
            try:
                rates = await self._attempt(provider, base_currency)
            except ProviderFetchFailed as e:
                logger.warning(f"Rate provider failed: {e}")
                failures.append(e)
                continue
            logger.info(
                f"Fetched {len(rates)} {base_currency} rates from {provider.name}"
            )
            return FetchedRates(
                base_currency=base_currency, rates=rates, provider=provider.name
            )

        error = AllProvidersExhausted(base_currency, failures)
        logger.error(str(error))
        raise error

    async def _attempt(self, provider: RateProvider, base_currency: str) -> RateSet:
        """One request to one provider, normalised into ProviderFetchFailed."""
        url = provider.build_url(base_currency)
        client = await self._get_client()
        try:
            response = await asyncio.wait_for(
                client.get(url, timeout=self.timeout), timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except TimeoutError as e:
            raise ProviderFetchFailed(provider.name, "timed out") from e
        except httpx.TimeoutException as e:
            raise ProviderFetchFailed(provider.name, f"timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ProviderFetchFailed(
                provider.name, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderFetchFailed(provider.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ProviderFetchFailed(provider.name, f"invalid JSON: {e}") from e

        try:
            return provider.parse(payload, base_currency)
        except ValueError as e:
            raise ProviderFetchFailed(provider.name, f"invalid rates: {e}") from e
