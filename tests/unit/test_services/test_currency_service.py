# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for currency_service."""

import math

import pytest
import respx
from httpx import Response

from travelfx.config import Settings
from travelfx.models import RateSource, UpdatePolicy
from travelfx.schemas.settings import UpdateSettingsUpdate
from travelfx.services.currency_service import (
    ConversionResult,
    CurrencyService,
    build_currency_service,
    round_amount,
)
from travelfx.services.exceptions import (
    InvalidCurrencyCode,
    InvalidRate,
    UnknownCurrency,
)
from travelfx.services.providers import ExchangeRateApiProvider
from travelfx.services.rate_sets import FALLBACK_RATES
from travelfx.services.reachability import NetworkState, ReachabilityGate

CHF_RATES = {"CHF": 1.0, "EUR": 0.93, "USD": 1.11}


@pytest.fixture
def cached(rate_store):
    """Fresh cache with the CHF scenario rates."""
    return rate_store.put("CHF", CHF_RATES)


def set_policy(settings_store, policy: UpdatePolicy) -> None:
    settings_store.update(UpdateSettingsUpdate(update_policy=policy))


class TestRoundAmount:
    """Tests for round_amount."""

    def test_rounds_to_cents(self):
        """Should round half-up to two decimals."""
        assert round_amount(2.675) == 2.68
        assert round_amount(-2.675) == -2.68
        assert round_amount(119.354838) == 119.35

    @pytest.mark.parametrize("value", [1e15, 1e26, 1e300, -1e27])
    def test_large_values_are_not_quantized(self, value):
        """Should return amounts beyond cent precision unchanged."""
        assert round_amount(value) == value

    def test_non_finite_values_pass_through(self):
        """Should return infinities and NaN unchanged."""
        assert round_amount(math.inf) == math.inf
        assert round_amount(-math.inf) == -math.inf
        assert math.isnan(round_amount(math.nan))


class TestConvert:
    """Tests for convert and convert_with_details."""

    @pytest.mark.asyncio
    async def test_chf_scenario(self, currency_service, cached, fetcher):
        """Should pivot through CHF using the cached rates."""
        assert await currency_service.convert(100, "CHF", "EUR") == 93.00
        assert await currency_service.convert(100, "EUR", "USD") == 119.35
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_convert_to_base(self, currency_service, cached):
        """Should convert into the base currency."""
        assert await currency_service.convert(93, "EUR", "CHF") == 100.00
        assert await currency_service.convert_to_base(111, "usd") == 100.00

    @pytest.mark.parametrize("code", ["CHF", "EUR", "JPY", "XYZ"])
    @pytest.mark.parametrize("amount", [0, 1, 12.345, 99999.999])
    @pytest.mark.asyncio
    async def test_identity_is_exact(self, currency_service, fetcher, probe, code, amount):
        """Should return the amount unchanged without any I/O."""
        assert await currency_service.convert(amount, code, code.lower()) == amount
        assert fetcher.calls == []
        assert probe.calls == 0

    @pytest.mark.parametrize(("a", "b"), [("CHF", "EUR"), ("EUR", "USD"), ("USD", "CHF")])
    @pytest.mark.parametrize("amount", [1, 47.5, 1234.56])
    @pytest.mark.asyncio
    async def test_round_trip_is_approximate_inverse(self, currency_service, cached, a, b, amount):
        """Should come back to the original amount within rounding."""
        there = await currency_service.convert(amount, a, b)
        back = await currency_service.convert(there, b, a)
        assert back == pytest.approx(amount, abs=0.02)

    @pytest.mark.asyncio
    async def test_returns_conversion_result(self, currency_service, cached):
        """Should report normalised codes, rate and source."""
        result = await currency_service.convert_with_details(50, "eur", "usd")

        assert isinstance(result, ConversionResult)
        assert result.original_currency == "EUR"
        assert result.target_currency == "USD"
        assert result.exchange_rate == pytest.approx(1.11 / 0.93)
        assert result.rate_source == RateSource.API

    @pytest.mark.asyncio
    async def test_rounds_half_up(self, currency_service, rate_store):
        """Should round the converted amount half-up."""
        rate_store.put("CHF", {"CHF": 1.0, "EUR": 1.005})
        assert await currency_service.convert(1, "CHF", "EUR") == 1.01

    @pytest.mark.asyncio
    async def test_large_amounts_convert(self, currency_service, cached):
        """Should convert amounts too large to carry cents."""
        assert await currency_service.convert(1e27, "CHF", "EUR") == pytest.approx(
            0.93e27
        )
        assert await currency_service.convert(1e26, "EUR", "USD") == pytest.approx(
            1e26 / 0.93 * 1.11
        )

    @pytest.mark.asyncio
    async def test_infinite_amount_converts(self, currency_service, cached):
        """Should return infinity instead of failing to round it."""
        assert await currency_service.convert(math.inf, "CHF", "EUR") == math.inf

    @pytest.mark.asyncio
    async def test_cache_keeps_full_precision(self, currency_service, rate_store):
        """Should not round the stored rates."""
        rate_store.put("CHF", {"CHF": 1.0, "EUR": 0.923456})
        await currency_service.convert(100, "CHF", "EUR")
        assert rate_store.get_cached("CHF").rates["EUR"] == 0.923456

    @pytest.mark.asyncio
    async def test_invalid_code(self, currency_service):
        """Should reject codes that are not three letters."""
        with pytest.raises(InvalidCurrencyCode):
            await currency_service.convert(10, "EURO", "USD")

    @pytest.mark.asyncio
    async def test_unknown_currency_degrades_to_one(self, currency_service, cached):
        """Should convert with rate 1.0 when a currency has no rate."""
        assert await currency_service.convert(100, "CHF", "THB") == 100.00

    @pytest.mark.asyncio
    async def test_unknown_currency_strict(self, rate_store, settings_store, probe, fetcher, clock, cached):
        """Should raise UnknownCurrency in strict mode."""
        service = CurrencyService(
            rate_store,
            settings_store,
            ReachabilityGate(probe),
            fetcher,
            strict_currencies=True,
            clock=clock,
        )
        with pytest.raises(UnknownCurrency) as exc_info:
            await service.convert(100, "CHF", "THB")
        assert exc_info.value.currency == "THB"


class TestManualOverrides:
    """Manual rates always win."""

    @pytest.mark.parametrize("rate", [0.5, 0.987654, 1.2345, 250])
    @pytest.mark.asyncio
    async def test_pivot_pair_override(self, currency_service, cached, rate):
        """Should use the manual rate for the exact pair."""
        currency_service.set_manual_rate("CHF", "EUR", rate)
        assert await currency_service.convert(1, "CHF", "EUR") == round_amount(rate)

    @pytest.mark.asyncio
    async def test_non_pivot_pair_override_skips_fetch(self, currency_service, fetcher, probe):
        """Should not fetch or probe when an exact pair override exists."""
        currency_service.set_manual_rate("EUR", "USD", 1.2)

        result = await currency_service.convert_with_details(10, "EUR", "USD")

        assert result.converted_amount == 12.00
        assert result.rate_source == RateSource.MANUAL
        assert fetcher.calls == []
        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_override_wins_over_fresh_cache_in_pivot_conversion(self, currency_service, cached):
        """Should merge pivot overrides over the cached rates."""
        currency_service.set_manual_rate("CHF", "EUR", 0.9)

        result = await currency_service.convert_with_details(100, "EUR", "USD")

        assert result.converted_amount == round_amount(100 / 0.9 * 1.11)
        assert result.rate_source == RateSource.MANUAL

    @pytest.mark.asyncio
    async def test_override_adds_missing_currency(self, currency_service, cached):
        """Should add currencies the cache does not know."""
        currency_service.set_manual_rate("CHF", "THB", 40)
        rates = await currency_service.get_exchange_rates()
        assert rates["THB"] == 40.0

    def test_invalid_manual_rate(self, currency_service):
        """Should reject non-positive manual rates."""
        with pytest.raises(InvalidRate):
            currency_service.set_manual_rate("CHF", "EUR", -1)

    @pytest.mark.asyncio
    async def test_delete_restores_fetched_rate(self, currency_service, cached):
        """Should fall back to the cached rate once the override is gone."""
        currency_service.set_manual_rate("CHF", "EUR", 0.5)
        currency_service.delete_manual_rate("CHF", "EUR")
        assert await currency_service.convert(100, "CHF", "EUR") == 93.00

    def test_delete_all_and_list(self, currency_service):
        """Should list and then remove every override."""
        currency_service.set_manual_rate("CHF", "EUR", 0.9)
        currency_service.set_manual_rate("EUR", "USD", 1.1)

        assert len(currency_service.list_manual_rates()) == 2
        assert currency_service.delete_all_manual_rates() == 2
        assert currency_service.list_manual_rates() == []


class TestRateAcquisition:
    """Cache, gate, fetch and fallback interplay."""

    @pytest.mark.asyncio
    async def test_missing_cache_triggers_fetch(self, currency_service, fetcher, rate_store, settings_store, clock):
        """Should fetch, store and record the update when nothing is cached."""
        assert await currency_service.convert(100, "CHF", "EUR") == 95.00

        assert fetcher.calls == ["CHF"]
        assert rate_store.get_cached("CHF").rates["EUR"] == 0.95
        assert settings_store.get().last_update == clock.now

    @pytest.mark.asyncio
    async def test_fresh_cache_is_not_refetched(self, currency_service, cached, fetcher, clock):
        """Should use the cache while it is within the expiry window."""
        clock.advance(hours=23)
        await currency_service.convert(100, "CHF", "EUR")
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_expired_cache_is_refreshed(self, currency_service, cached, fetcher, clock):
        """Should fetch again once the cache has expired."""
        clock.advance(hours=25)

        assert await currency_service.convert(100, "CHF", "EUR") == 95.00
        assert fetcher.calls == ["CHF"]

    @pytest.mark.asyncio
    async def test_expired_cache_used_when_fetch_fails(self, currency_service, cached, fetcher, clock):
        """Should keep using stale rates when every provider fails."""
        fetcher.rates = None
        clock.advance(hours=25)

        assert await currency_service.convert(100, "CHF", "EUR") == 93.00
        assert fetcher.calls == ["CHF"]

    @pytest.mark.asyncio
    async def test_fallback_table_without_cache(self, currency_service, fetcher):
        """Should use the static table when nothing else is available."""
        fetcher.rates = None

        result = await currency_service.convert_with_details(100, "CHF", "GBP")

        assert result.converted_amount == round_amount(100 * FALLBACK_RATES["GBP"])
        assert result.rate_source == RateSource.FALLBACK

    @pytest.mark.asyncio
    async def test_fallback_when_offline(self, currency_service, fetcher, probe, rate_store):
        """Should not fetch or cache anything while offline."""
        probe.state = NetworkState(reachable=False)

        assert await currency_service.convert(100, "CHF", "EUR") == 93.00
        assert fetcher.calls == []
        assert rate_store.get_cached("CHF") is None

    @pytest.mark.asyncio
    async def test_manual_policy_never_fetches(self, currency_service, settings_store, fetcher, probe, clock, cached):
        """Should neither probe nor fetch under the manual policy."""
        set_policy(settings_store, UpdatePolicy.MANUAL)
        clock.advance(days=30)

        assert await currency_service.convert(100, "CHF", "EUR") == 93.00
        assert fetcher.calls == []
        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_manual_update_ignores_policy(self, currency_service, settings_store, fetcher, rate_store, clock):
        """Should fetch on explicit update even under the manual policy."""
        set_policy(settings_store, UpdatePolicy.MANUAL)

        result = await currency_service.manual_update()

        assert result.success is True
        assert result.provider == "stub"
        assert result.updated_at == clock.now
        assert rate_store.get_cached("CHF").rates["USD"] == 1.15
        assert settings_store.get().last_update == clock.now

    @pytest.mark.asyncio
    async def test_manual_update_reports_exhaustion(self, currency_service, fetcher, settings_store):
        """Should report failure when every provider fails."""
        fetcher.rates = None

        result = await currency_service.manual_update()

        assert result.success is False
        assert "stub" in result.error
        assert settings_store.get().last_update is None

    @pytest.mark.asyncio
    async def test_manual_update_reports_no_connectivity(self, currency_service, probe, fetcher):
        """Should report failure without fetching when offline."""
        probe.state = NetworkState(reachable=False)

        result = await currency_service.manual_update()

        assert result.success is False
        assert result.error
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_manual_rate_edit_does_not_touch_last_update(self, currency_service, settings_store):
        """Should leave lastUpdate alone when a manual rate changes."""
        currency_service.set_manual_rate("CHF", "EUR", 0.9)
        assert settings_store.get().last_update is None

    @pytest.mark.asyncio
    async def test_non_chf_base_uses_rebased_fallback(self, rate_store, settings_store, probe, fetcher, clock):
        """Should rebase the fallback table onto another base currency."""
        fetcher.rates = None
        service = CurrencyService(
            rate_store, settings_store, ReachabilityGate(probe), fetcher,
            base_currency="EUR", clock=clock,
        )

        assert await service.convert(93, "EUR", "CHF") == 100.00

    def test_clear_cache(self, currency_service, cached, rate_store):
        """Should drop the cached rates."""
        currency_service.clear_cache()
        assert rate_store.get_cached("CHF") is None
        assert currency_service.get_cache_status().has_cache is False


class TestRatesWithSources:
    @pytest.mark.asyncio
    async def test_manual_first_then_by_code(self, currency_service, cached):
        """Should list manual rates before fetched ones."""
        currency_service.set_manual_rate("CHF", "USD", 1.2)

        rates = await currency_service.get_all_rates_with_sources()

        assert [(r.currency, r.source) for r in rates] == [
            ("USD", RateSource.MANUAL),
            ("EUR", RateSource.API),
        ]
        assert rates[0].rate == 1.2

    @pytest.mark.asyncio
    async def test_fallback_sources(self, currency_service, fetcher):
        """Should mark table rates as fallback and omit the base."""
        fetcher.rates = None
        rates = await currency_service.get_all_rates_with_sources()
        assert {r.source for r in rates} == {RateSource.FALLBACK}
        assert "CHF" not in {r.currency for r in rates}


class TestSettingsDelegation:
    def test_update_and_get(self, currency_service):
        """Should store and return update settings."""
        currency_service.update_settings(UpdateSettingsUpdate(cache_expiry_hours=48))
        assert currency_service.get_update_settings().cache_expiry_hours == 48

    @pytest.mark.asyncio
    async def test_shorter_expiry_forces_refresh(self, currency_service, cached, fetcher, clock):
        """Should apply a shorter expiry to the existing cache."""
        currency_service.update_settings(UpdateSettingsUpdate(cache_expiry_hours=1))
        clock.advance(hours=2)

        await currency_service.convert(1, "CHF", "EUR")

        assert fetcher.calls == ["CHF"]


class TestBuildCurrencyService:
    @respx.mock
    @pytest.mark.asyncio
    async def test_wires_real_fetcher(self, db_session, make_probe, clock):
        """Should build a working service from settings."""
        respx.get("https://api.exchangerate-api.com/v4/latest/EUR").mock(
            return_value=Response(200, json={"rates": {"EUR": 1, "USD": 1.08}})
        )
        service = build_currency_service(
            db_session,
            settings=Settings(base_currency="eur"),
            probe=make_probe(),
            providers=[ExchangeRateApiProvider()],
            clock=clock,
        )
        try:
            assert service.base_currency == "EUR"
            assert await service.convert(100, "EUR", "USD") == 108.00
        finally:
            await service.close()
