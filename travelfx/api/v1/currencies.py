# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Currency API endpoints."""

import math

from fastapi import APIRouter, Depends, HTTPException, Query, status

from travelfx.api.deps import get_currency_service
from travelfx.currencies import CURRENCIES, search_currencies
from travelfx.schemas.currency import (
    CacheStatusResponse,
    ConversionResponse,
    CurrencyResponse,
    DeletedResponse,
    ManualRateCreate,
    ManualRateResponse,
    RateWithSourceResponse,
    UpdateResultResponse,
)
from travelfx.schemas.settings import UpdateSettings, UpdateSettingsUpdate
from travelfx.services.cache_status import format_cache_age
from travelfx.services.currency_service import CurrencyService
from travelfx.services.exceptions import (
    InvalidCurrencyCode,
    InvalidRate,
    UnknownCurrency,
)

router = APIRouter(prefix="/currencies")


@router.get("", response_model=list[CurrencyResponse])
def list_currencies(q: str | None = Query(None, max_length=50)) -> list[CurrencyResponse]:
    """List known currencies, optionally filtered by code or name."""
    currencies = search_currencies(q) if q else CURRENCIES
    return [
        CurrencyResponse(code=c.code, name=c.name, symbol=c.symbol, flag=c.flag)
        for c in currencies
    ]


@router.get("/convert", response_model=ConversionResponse)
async def convert(
    amount: float = Query(...),
    from_currency: str = Query(..., min_length=3, max_length=3, alias="from"),
    to_currency: str = Query(..., min_length=3, max_length=3, alias="to"),
    service: CurrencyService = Depends(get_currency_service),
) -> ConversionResponse:
    """Convert an amount between two currencies."""
    if not math.isfinite(amount):
        raise HTTPException(status_code=422, detail="Amount must be a finite number")
    try:
        result = await service.convert_with_details(amount, from_currency, to_currency)
    except InvalidCurrencyCode as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except UnknownCurrency as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return ConversionResponse(
        original_amount=result.original_amount,
        original_currency=result.original_currency,
        converted_amount=result.converted_amount,
        target_currency=result.target_currency,
        exchange_rate=result.exchange_rate,
        rate_source=result.rate_source,
    )


@router.get("/rates", response_model=list[RateWithSourceResponse])
async def list_rates(
    service: CurrencyService = Depends(get_currency_service),
) -> list[RateWithSourceResponse]:
    """Effective rates relative to the base currency, with their sources."""
    rates = await service.get_all_rates_with_sources()
    return [
        RateWithSourceResponse(currency=r.currency, rate=r.rate, source=r.source)
        for r in rates
    ]


@router.post("/rates/update", response_model=UpdateResultResponse)
async def update_rates(
    service: CurrencyService = Depends(get_currency_service),
) -> UpdateResultResponse:
    """Fetch rates now, ignoring the update policy."""
    result = await service.manual_update()
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error or "Exchange rate update failed",
        )
    return UpdateResultResponse(
        success=result.success,
        provider=result.provider,
        error=result.error,
        updated_at=result.updated_at,
    )


@router.get("/cache", response_model=CacheStatusResponse)
def get_cache_status(
    service: CurrencyService = Depends(get_currency_service),
) -> CacheStatusResponse:
    """Age and expiry of the cached rates."""
    cache_status = service.get_cache_status()
    return CacheStatusResponse(
        has_cache=cache_status.has_cache,
        age_ms=cache_status.age_ms,
        age_display=format_cache_age(cache_status.age_ms),
        is_expired=cache_status.is_expired,
        last_update=cache_status.last_update,
    )


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
def clear_cache(service: CurrencyService = Depends(get_currency_service)) -> None:
    """Drop the cached rates. Manual rates are kept."""
    service.clear_cache()


@router.get("/settings", response_model=UpdateSettings)
def get_update_settings(
    service: CurrencyService = Depends(get_currency_service),
) -> UpdateSettings:
    """Current update policy."""
    return service.get_update_settings()


@router.patch("/settings", response_model=UpdateSettings)
def update_update_settings(
    data: UpdateSettingsUpdate,
    service: CurrencyService = Depends(get_currency_service),
) -> UpdateSettings:
    """Change some of the update settings."""
    return service.update_settings(data)


@router.get("/manual-rates", response_model=list[ManualRateResponse])
def list_manual_rates(
    base: str | None = Query(None, min_length=3, max_length=3),
    service: CurrencyService = Depends(get_currency_service),
) -> list[ManualRateResponse]:
    """List manual rates, optionally for one base currency."""
    try:
        rates = service.list_manual_rates(base)
    except InvalidCurrencyCode as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return [ManualRateResponse.model_validate(r) for r in rates]


@router.put("/manual-rates", response_model=ManualRateResponse)
def set_manual_rate(
    data: ManualRateCreate,
    service: CurrencyService = Depends(get_currency_service),
) -> ManualRateResponse:
    """Create or replace the manual rate for a pair."""
    try:
        rate = service.set_manual_rate(
            data.base_currency, data.target_currency, data.rate
        )
    except (InvalidRate, InvalidCurrencyCode) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return ManualRateResponse.model_validate(rate)


@router.delete("/manual-rates", response_model=DeletedResponse)
def delete_all_manual_rates(
    service: CurrencyService = Depends(get_currency_service),
) -> DeletedResponse:
    """Remove every manual rate."""
    return DeletedResponse(deleted=service.delete_all_manual_rates())


@router.delete(
    "/manual-rates/{base_currency}/{target_currency}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_manual_rate(
    base_currency: str,
    target_currency: str,
    service: CurrencyService = Depends(get_currency_service),
) -> None:
    """Remove one manual rate. Missing pairs are not an error."""
    try:
        service.delete_manual_rate(base_currency, target_currency)
    except InvalidCurrencyCode as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
