# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""External exchange rate providers.

Each provider knows the URL of its "latest rates for base X" endpoint and
how to pull the rate map out of its JSON response. Everything else (HTTP,
timeouts, validation, fallback order) lives in the fetcher, so adding a
provider means adding a class here and listing it in ``DEFAULT_PROVIDERS``.
"""

from abc import ABC, abstractmethod
from typing import Any

from travelfx.services.rate_sets import RateSet, validate_rate_set


class RateProvider(ABC):
    """Base class for all rate providers."""

    name: str = "base"

    @abstractmethod
    def build_url(self, base_currency: str) -> str:
        """URL returning the latest rates relative to ``base_currency``."""
        ...

    @abstractmethod
    def extract_rates(self, payload: Any, base_currency: str) -> Any:
        """Return the raw rate map from a decoded response body."""
        ...

    def parse(self, payload: Any, base_currency: str) -> RateSet:
        """Turn a decoded response body into a validated RateSet.

        Raises:
            ValueError: If the response does not hold a usable rate map.
        """
        if not isinstance(payload, dict):
            raise ValueError("Response body is not a JSON object")
        return validate_rate_set(
            self.extract_rates(payload, base_currency), base_currency
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ExchangeRateApiProvider(RateProvider):
    """exchangerate-api.com v4, free endpoint without an API key."""

    name = "exchangerate-api"
    base_url = "https://api.exchangerate-api.com/v4/latest"

    def build_url(self, base_currency: str) -> str:
        return f"{self.base_url}/{base_currency}"

    def extract_rates(self, payload: Any, base_currency: str) -> Any:
        return payload.get("rates")


class OpenErApiProvider(RateProvider):
    """open.er-api.com v6 open access endpoint."""

    name = "open-er-api"
    base_url = "https://open.er-api.com/v6/latest"

    def build_url(self, base_currency: str) -> str:
        return f"{self.base_url}/{base_currency}"

    def extract_rates(self, payload: Any, base_currency: str) -> Any:
        # Errors come back as 200 with {"result": "error", "error-type": ...}
        if payload.get("result") != "success":
            raise ValueError(f"Provider reported {payload.get('error-type', 'error')}")
        return payload.get("rates")


class FrankfurterProvider(RateProvider):
    """frankfurter.app (ECB data). The base is omitted from ``rates``."""

    name = "frankfurter"
    base_url = "https://api.frankfurter.app"

    def build_url(self, base_currency: str) -> str:
        return f"{self.base_url}/latest?from={base_currency}"

    def extract_rates(self, payload: Any, base_currency: str) -> Any:
        return payload.get("rates")


class FawazCurrencyApiProvider(RateProvider):
    """fawazahmed0 currency-api served from jsDelivr.

    Keys are lower case and the map sits under the base code:
    ``{"date": "...", "chf": {"eur": 0.93, ...}}``.
    """

    name = "currency-api"
    base_url = "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1"

    def build_url(self, base_currency: str) -> str:
        return f"{self.base_url}/currencies/{base_currency.lower()}.json"

    def extract_rates(self, payload: Any, base_currency: str) -> Any:
        return payload.get(base_currency.lower())


DEFAULT_PROVIDERS: tuple[type[RateProvider], ...] = (
    ExchangeRateApiProvider,
    OpenErApiProvider,
    FrankfurterProvider,
    FawazCurrencyApiProvider,
)


def default_providers() -> list[RateProvider]:
    """Instantiate the built-in providers in priority order."""
    return [provider() for provider in DEFAULT_PROVIDERS]
