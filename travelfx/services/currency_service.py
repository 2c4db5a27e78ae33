# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Currency conversion service.

All conversions pivot through one configured base currency. Rates come
from the cache while it is fresh, from the provider chain when the cache is
stale and fetching is allowed, and otherwise from the stale cache or the
static fallback table. Manual overrides always win over fetched rates.
"""

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.orm import Session

from travelfx.config import Settings, get_settings
from travelfx.currencies import normalize_currency
from travelfx.models import ManualExchangeRate, RateSource, utcnow
from travelfx.schemas.settings import UpdateSettings, UpdateSettingsUpdate
from travelfx.services.cache_status import CacheStatus, CacheStatusReporter, is_expired
from travelfx.services.exceptions import (
    AllProvidersExhausted,
    NoConnectivity,
    UnknownCurrency,
)
from travelfx.services.providers import RateProvider
from travelfx.services.rate_fetcher import FetchedRates, ProviderChainFetcher
from travelfx.services.rate_sets import (
    FALLBACK_BASE_CURRENCY,
    FALLBACK_RATES,
    RateSet,
    fallback_rates_for,
    merge_rates,
)
from travelfx.services.rate_store import CachedRates, RateStore
from travelfx.services.reachability import (
    ConnectivityProbe,
    HttpConnectivityProbe,
    ReachabilityGate,
)
from travelfx.services.settings_store import SettingsStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Floats lose cent precision beyond this magnitude.
UNROUNDED_AMOUNT = 1e15


@dataclass
class ConversionResult:
    """Result of a currency conversion."""

    original_amount: float
    original_currency: str
    converted_amount: float
    target_currency: str
    exchange_rate: float
    rate_source: RateSource | None


@dataclass
class RateWithSource:
    """An effective rate relative to the base currency."""

    currency: str
    rate: float
    source: RateSource


@dataclass
class UpdateResult:
    """Outcome of an explicit "update now"."""

    success: bool
    provider: str | None = None
    error: str | None = None
    updated_at: datetime | None = None


def round_amount(value: float) -> float:
    """Round half-up to two decimals for display.

    Non-finite values and amounts too large to carry cents are returned
    unchanged.
    """
    if not math.isfinite(value) or abs(value) >= UNROUNDED_AMOUNT:
        return value
    return float(Decimal(repr(value)).quantize(CENT, rounding=ROUND_HALF_UP))


class CurrencyService:
    """Service for currency conversion and exchange rate management."""

    def __init__(
        self,
        rate_store: RateStore,
        settings_store: SettingsStore,
        gate: ReachabilityGate,
        fetcher: ProviderChainFetcher,
        base_currency: str = FALLBACK_BASE_CURRENCY,
        fallback_rates: Mapping[str, float] = FALLBACK_RATES,
        fallback_base: str = FALLBACK_BASE_CURRENCY,
        strict_currencies: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the currency service.

        Args:
            rate_store: Cached rates and manual overrides.
            settings_store: Update policy and cache expiry.
            gate: Decides whether fetching is allowed.
            fetcher: Provider chain used to refresh rates.
            base_currency: Pivot currency for every conversion.
            fallback_rates: Static table used when nothing else is available.
            fallback_base: Base currency of ``fallback_rates``.
            strict_currencies: Raise UnknownCurrency instead of using 1.0
                for currencies without a rate.
            clock: Source of the current naive UTC time.
        """
        self.rate_store = rate_store
        self.settings_store = settings_store
        self.gate = gate
        self.fetcher = fetcher
        self.base_currency = normalize_currency(base_currency)
        self.fallback_rates = dict(fallback_rates)
        self.fallback_base = normalize_currency(fallback_base)
        self.strict_currencies = strict_currencies
        self.clock = clock
        self.cache_status_reporter = CacheStatusReporter(
            rate_store, settings_store, clock
        )

    async def close(self) -> None:
        """Close network clients."""
        await self.fetcher.close()
        await self.gate.close()

    async def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        """Convert an amount and return only the rounded value."""
        result = await self.convert_with_details(amount, from_currency, to_currency)
        return result.converted_amount

    async def convert_with_details(
        self,
        amount: float,
        from_currency: str,
        to_currency: str,
    ) -> ConversionResult:
        """Convert an amount from one currency to another.

        Never fails because of the network: stale or fallback rates are
        used when fresh ones cannot be had.

        Raises:
            InvalidCurrencyCode: If a code is not three letters.
            UnknownCurrency: In strict mode, if a currency has no rate.
        """
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)

        if from_currency == to_currency:
            return ConversionResult(
                original_amount=amount,
                original_currency=from_currency,
                converted_amount=amount,
                target_currency=to_currency,
                exchange_rate=1.0,
                rate_source=None,
            )

        # A manual rate for exactly this pair needs no rate set at all
        manual = self.rate_store.get_manual_rate(from_currency, to_currency)
        if manual is not None:
            return ConversionResult(
                original_amount=amount,
                original_currency=from_currency,
                converted_amount=round_amount(amount * manual.rate),
                target_currency=to_currency,
                exchange_rate=manual.rate,
                rate_source=RateSource.MANUAL,
            )

        rates, sources = await self._effective_rates()
        from_rate = self._rate_for(rates, from_currency)
        to_rate = self._rate_for(rates, to_currency)

        amount_in_base = amount
        if from_currency != self.base_currency:
            amount_in_base = amount / from_rate
        converted = amount_in_base
        if to_currency != self.base_currency:
            converted = amount_in_base * to_rate

        return ConversionResult(
            original_amount=amount,
            original_currency=from_currency,
            converted_amount=round_amount(converted),
            target_currency=to_currency,
            exchange_rate=to_rate / from_rate,
            rate_source=self._combined_source(
                sources, from_currency, to_currency
            ),
        )

    async def convert_to_base(self, amount: float, from_currency: str) -> float:
        """Convert an amount into the base currency."""
        return await self.convert(amount, from_currency, self.base_currency)

    async def get_exchange_rates(self, force: bool = False) -> RateSet:
        """Effective rates for the base currency, overrides applied."""
        rates, _ = await self._effective_rates(force=force)
        return rates

    async def get_all_rates_with_sources(self) -> list[RateWithSource]:
        """Every effective rate with its source, manual ones first."""
        rates, sources = await self._effective_rates()
        entries = [
            RateWithSource(currency=code, rate=rate, source=sources[code])
            for code, rate in rates.items()
            if code != self.base_currency
        ]
        entries.sort(key=lambda e: (e.source != RateSource.MANUAL, e.currency))
        return entries

    async def manual_update(self) -> UpdateResult:
        """Fetch fresh rates now, regardless of update policy.

        Unlike conversions this reports failure instead of falling back, so
        the operator learns whether the update worked.
        """
        settings = self.settings_store.get()
        try:
            fetched, stored = await self._refresh(settings, force=True)
        except NoConnectivity as e:
            return UpdateResult(success=False, error=str(e))
        except AllProvidersExhausted as e:
            return UpdateResult(success=False, error=str(e))
        return UpdateResult(
            success=True, provider=fetched.provider, updated_at=stored.timestamp
        )

    def set_manual_rate(
        self, base_currency: str, target_currency: str, rate: Any
    ) -> ManualExchangeRate:
        """Store a manual rate. Raises InvalidRate for bad values."""
        return self.rate_store.upsert_manual_rate(base_currency, target_currency, rate)

    def delete_manual_rate(self, base_currency: str, target_currency: str) -> bool:
        """Remove one manual rate."""
        return self.rate_store.delete_manual_rate(base_currency, target_currency)

    def delete_all_manual_rates(self) -> int:
        """Remove every manual rate."""
        return self.rate_store.delete_all_manual_rates()

    def list_manual_rates(self, base_currency: str | None = None) -> list[ManualExchangeRate]:
        """List manual rates."""
        return self.rate_store.list_manual_rates(base_currency)

    def clear_cache(self) -> None:
        """Drop cached rates; manual rates are kept."""
        self.rate_store.clear()

    def get_update_settings(self) -> UpdateSettings:
        """Current update settings."""
        return self.settings_store.get()

    def update_settings(self, data: UpdateSettingsUpdate) -> UpdateSettings:
        """Partially update the update settings."""
        return self.settings_store.update(data)

    def get_cache_status(self) -> CacheStatus:
        """Cache age and expiry."""
        return self.cache_status_reporter.status()

    async def _effective_rates(
        self, force: bool = False
    ) -> tuple[RateSet, dict[str, RateSource]]:
        rates, source = await self._load_rates(force=force)
        overrides = {
            m.target_currency: m.rate
            for m in self.rate_store.list_manual_rates(self.base_currency)
        }
        merged = merge_rates(rates, overrides)
        sources = {
            code: RateSource.MANUAL if code in overrides else source for code in merged
        }
        return merged, sources

    async def _load_rates(self, force: bool = False) -> tuple[RateSet, RateSource]:
        """Rates for the base currency before overrides are applied."""
        settings = self.settings_store.get()
        cached = self.rate_store.get_cached(self.base_currency)
        if cached is not None and not force and not self._is_stale(cached, settings):
            return cached.rates, RateSource.API

        try:
            fetched, _ = await self._refresh(settings, force=force)
            return fetched.rates, RateSource.API
        except NoConnectivity as e:
            logger.info(f"Using stored rates: {e}")
        except AllProvidersExhausted as e:
            logger.warning(f"Using stored rates after failed refresh: {e}")

        if cached is not None:
            return cached.rates, RateSource.API

        logger.warning(f"No cached {self.base_currency} rates, using fallback table")
        return (
            fallback_rates_for(
                self.base_currency, self.fallback_rates, self.fallback_base
            ),
            RateSource.FALLBACK,
        )

    async def _refresh(
        self, settings: UpdateSettings, force: bool = False
    ) -> tuple[FetchedRates, CachedRates]:
        """Fetch and persist rates if the gate allows it.

        Raises:
            NoConnectivity: If fetching is not allowed right now.
            AllProvidersExhausted: If every provider failed.
        """
        if not await self.gate.is_fetch_allowed(settings, force=force):
            raise NoConnectivity("Fetching exchange rates is not possible right now")

        fetched = await self.fetcher.fetch(self.base_currency)
        stored = self.rate_store.put(self.base_currency, fetched.rates)
        self.settings_store.record_successful_update(stored.timestamp)
        return fetched, stored

    def _is_stale(self, cached: CachedRates, settings: UpdateSettings) -> bool:
        age_ms = (self.clock() - cached.timestamp) // timedelta(milliseconds=1)
        return is_expired(age_ms, settings.cache_expiry_hours)

    def _rate_for(self, rates: RateSet, currency: str) -> float:
        if currency == self.base_currency:
            return 1.0
        rate = rates.get(currency)
        if rate is None:
            if self.strict_currencies:
                raise UnknownCurrency(currency)
            logger.warning(f"No rate for {currency}, converting with 1.0")
            return 1.0
        return rate

    def _combined_source(
        self, sources: dict[str, RateSource], *currencies: str
    ) -> RateSource:
        used = {
            sources[c]
            for c in currencies
            if c != self.base_currency and c in sources
        }
        for source in (RateSource.MANUAL, RateSource.FALLBACK):
            if source in used:
                return source
        return RateSource.API


def build_currency_service(
    db: Session,
    settings: Settings | None = None,
    probe: ConnectivityProbe | None = None,
    providers: Sequence[RateProvider] | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> CurrencyService:
    """Wire a CurrencyService with its stores for one database session."""
    settings = settings or get_settings()
    if probe is None:
        probe = HttpConnectivityProbe(
            url=settings.probe_url,
            timeout=settings.probe_timeout_seconds,
            connection_type=settings.connection_type,
        )
    return CurrencyService(
        rate_store=RateStore(db, clock=clock),
        settings_store=SettingsStore(db),
        gate=ReachabilityGate(probe, timeout=settings.probe_timeout_seconds),
        fetcher=ProviderChainFetcher(
            providers, timeout=settings.provider_timeout_seconds
        ),
        base_currency=settings.base_currency,
        strict_currencies=settings.strict_currencies,
        clock=clock,
    )
