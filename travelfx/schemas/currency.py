# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Currency API schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from travelfx.models.enums import RateSource


class CurrencyResponse(BaseModel):
    """Currency metadata response."""

    code: str
    name: str
    symbol: str
    flag: str


class ConversionResponse(BaseModel):
    """Result of a conversion."""

    original_amount: float
    original_currency: str
    converted_amount: float
    target_currency: str
    exchange_rate: float
    rate_source: Optional[RateSource] = None


class RateWithSourceResponse(BaseModel):
    """One effective rate and where it came from."""

    currency: str
    rate: float
    source: RateSource


class ManualRateCreate(BaseModel):
    """Schema for creating or replacing a manual rate."""

    base_currency: str = Field(..., min_length=3, max_length=3)
    target_currency: str = Field(..., min_length=3, max_length=3)
    # Validated by the rate store so the error type stays InvalidRate.
    rate: float


class ManualRateResponse(BaseModel):
    """Stored manual rate."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    base_currency: str
    target_currency: str
    rate: float
    source: str
    created_at: datetime
    updated_at: datetime


class CacheStatusResponse(BaseModel):
    """Cache status for settings screens."""

    has_cache: bool
    age_ms: Optional[int] = None
    age_display: Optional[str] = None
    is_expired: bool
    last_update: Optional[datetime] = None


class UpdateResultResponse(BaseModel):
    """Outcome of an explicit update."""

    success: bool
    provider: Optional[str] = None
    error: Optional[str] = None
    updated_at: Optional[datetime] = None


class DeletedResponse(BaseModel):
    """Number of removed rows."""

    deleted: int
