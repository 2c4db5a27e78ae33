# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Read-only cache status for settings screens."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from travelfx.models import utcnow
from travelfx.services.rate_store import RateStore
from travelfx.services.settings_store import SettingsStore

MILLIS_PER_HOUR = 3_600_000


@dataclass
class CacheStatus:
    """Age and expiry of the cached rate set."""

    has_cache: bool
    age_ms: int | None
    is_expired: bool
    last_update: datetime | None


def is_expired(age_ms: int, cache_expiry_hours: int) -> bool:
    """True once the age is strictly beyond the expiry window."""
    return age_ms > cache_expiry_hours * MILLIS_PER_HOUR


def format_cache_age(age_ms: int | None) -> str:
    """Short human readable age."""
    if age_ms is None:
        return "no cache"
    minutes = age_ms // 60_000
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} min"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} h"
    return f"{hours // 24} d"


class CacheStatusReporter:
    """Computes cache status without mutating anything."""

    def __init__(
        self,
        rate_store: RateStore,
        settings_store: SettingsStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.rate_store = rate_store
        self.settings_store = settings_store
        self.clock = clock

    def status(self) -> CacheStatus:
        """Current status of the cached rate set."""
        settings = self.settings_store.get()
        timestamp = self.rate_store.get_cache_timestamp()
        if timestamp is None:
            return CacheStatus(
                has_cache=False,
                age_ms=None,
                is_expired=True,
                last_update=settings.last_update,
            )

        age_ms = (self.clock() - timestamp) // timedelta(milliseconds=1)
        return CacheStatus(
            has_cache=True,
            age_ms=age_ms,
            is_expired=is_expired(age_ms, settings.cache_expiry_hours),
            last_update=settings.last_update,
        )
