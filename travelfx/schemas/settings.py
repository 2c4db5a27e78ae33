# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Exchange rate update settings schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from travelfx.models.enums import UpdatePolicy

DEFAULT_CACHE_EXPIRY_HOURS = 24


class UpdateSettings(BaseModel):
    """Persisted policy for refreshing exchange rates."""

    update_policy: UpdatePolicy = Field(default=UpdatePolicy.AUTO)
    allow_mobile_data: bool = Field(default=True)
    cache_expiry_hours: int = Field(default=DEFAULT_CACHE_EXPIRY_HOURS, gt=0)
    last_update: Optional[datetime] = None


class UpdateSettingsUpdate(BaseModel):
    """Schema for partially updating the update settings."""

    update_policy: Optional[UpdatePolicy] = None
    allow_mobile_data: Optional[bool] = None
    cache_expiry_hours: Optional[int] = Field(None, gt=0)
