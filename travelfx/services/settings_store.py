# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Persisted exchange rate update settings."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from travelfx.models.enums import UpdatePolicy
from travelfx.schemas.settings import (
    DEFAULT_CACHE_EXPIRY_HOURS,
    UpdateSettings,
    UpdateSettingsUpdate,
)
from travelfx.services import settings_service

logger = logging.getLogger(__name__)

KEY_UPDATE_POLICY = "updatePolicy"
KEY_ALLOW_MOBILE_DATA = "allowMobileData"
KEY_CACHE_EXPIRY_HOURS = "cacheExpiryHours"
KEY_LAST_UPDATE = "lastUpdate"


class SettingsStore:
    """Reads and writes the singleton :class:`UpdateSettings`."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self) -> UpdateSettings:
        """Return the stored settings, with defaults for anything unset."""
        return UpdateSettings(
            update_policy=self._get_policy(),
            allow_mobile_data=self._get_allow_mobile_data(),
            cache_expiry_hours=self._get_cache_expiry_hours(),
            last_update=self._get_last_update(),
        )

    def update(self, data: UpdateSettingsUpdate) -> UpdateSettings:
        """Merge the provided fields into the stored settings."""
        if data.update_policy is not None:
            settings_service.set_setting(
                self.db, KEY_UPDATE_POLICY, data.update_policy.value, commit=False
            )
        if data.allow_mobile_data is not None:
            settings_service.set_setting(
                self.db,
                KEY_ALLOW_MOBILE_DATA,
                "true" if data.allow_mobile_data else "false",
                commit=False,
            )
        if data.cache_expiry_hours is not None:
            settings_service.set_setting(
                self.db,
                KEY_CACHE_EXPIRY_HOURS,
                str(data.cache_expiry_hours),
                commit=False,
            )
        self.db.commit()
        return self.get()

    def record_successful_update(self, instant: datetime) -> None:
        """Remember when rates were last fetched from the network."""
        settings_service.set_setting(self.db, KEY_LAST_UPDATE, instant.isoformat())

    def _get_policy(self) -> UpdatePolicy:
        value = settings_service.get_setting(self.db, KEY_UPDATE_POLICY)
        if value is None:
            return UpdatePolicy.AUTO
        try:
            return UpdatePolicy(value)
        except ValueError:
            logger.warning(f"Ignoring unknown update policy {value!r}")
            return UpdatePolicy.AUTO

    def _get_allow_mobile_data(self) -> bool:
        value = settings_service.get_setting(self.db, KEY_ALLOW_MOBILE_DATA)
        if value is None:
            return True
        return value.lower() == "true"

    def _get_cache_expiry_hours(self) -> int:
        value = settings_service.get_setting(self.db, KEY_CACHE_EXPIRY_HOURS)
        if value is None:
            return DEFAULT_CACHE_EXPIRY_HOURS
        try:
            hours = int(value)
        except ValueError:
            hours = 0
        if hours <= 0:
            logger.warning(f"Ignoring invalid cache expiry {value!r}")
            return DEFAULT_CACHE_EXPIRY_HOURS
        return hours

    def _get_last_update(self) -> datetime | None:
        value = settings_service.get_setting(self.db, KEY_LAST_UPDATE)
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring unreadable last update {value!r}")
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(UTC).replace(tzinfo=None)
        return parsed
