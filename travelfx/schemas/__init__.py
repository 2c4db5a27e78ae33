# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Pydantic schemas package."""

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

__all__ = [
    "CacheStatusResponse",
    "ConversionResponse",
    "CurrencyResponse",
    "DeletedResponse",
    "ManualRateCreate",
    "ManualRateResponse",
    "RateWithSourceResponse",
    "UpdateResultResponse",
    "UpdateSettings",
    "UpdateSettingsUpdate",
]
