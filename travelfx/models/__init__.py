# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Database models package."""

from travelfx.models.app_setting import AppSetting
from travelfx.models.base import Base, TimestampMixin, utcnow
from travelfx.models.enums import ConnectionType, RateSource, UpdatePolicy
from travelfx.models.manual_exchange_rate import ManualExchangeRate

__all__ = [
    "AppSetting",
    "Base",
    "ConnectionType",
    "ManualExchangeRate",
    "RateSource",
    "TimestampMixin",
    "UpdatePolicy",
    "utcnow",
]
