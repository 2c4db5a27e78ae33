# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Exceptions raised by the currency services."""


class CurrencyServiceError(Exception):
    """Base exception for currency service errors."""


class InvalidRate(CurrencyServiceError):
    """A manual rate was not a positive finite number."""


class InvalidCurrencyCode(CurrencyServiceError):
    """A currency code is not three letters."""


class UnknownCurrency(CurrencyServiceError):
    """No rate is known for a currency and strict mode is enabled."""

    def __init__(self, currency: str) -> None:
        super().__init__(f"No exchange rate known for {currency}")
        self.currency = currency


class NoConnectivity(CurrencyServiceError):
    """Fetching is not allowed right now (policy or network)."""


class ProviderFetchFailed(CurrencyServiceError):
    """A single rate provider could not deliver a usable rate set."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class AllProvidersExhausted(CurrencyServiceError):
    """Every configured provider failed for a base currency."""

    def __init__(self, base_currency: str, failures: list[ProviderFetchFailed]) -> None:
        summary = "; ".join(str(f) for f in failures) or "no providers configured"
        super().__init__(f"All providers failed for {base_currency}: {summary}")
        self.base_currency = base_currency
        self.failures = failures
