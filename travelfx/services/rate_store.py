# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Storage for the cached rate set and manual rate overrides."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from travelfx.currencies import normalize_currency
from travelfx.models import ManualExchangeRate, RateSource, utcnow
from travelfx.services import settings_service
from travelfx.services.exceptions import InvalidRate
from travelfx.services.rate_sets import RateSet, coerce_rate

logger = logging.getLogger(__name__)

KEY_CACHED_RATES = "cachedRatesJSON"
KEY_CACHE_TIMESTAMP = "cacheTimestamp"

EPOCH = datetime(1970, 1, 1)


@dataclass
class CachedRates:
    """A cached rate set and when it was stored."""

    base_currency: str
    rates: RateSet
    timestamp: datetime


def to_epoch_millis(instant: datetime) -> int:
    """Naive UTC datetime to epoch milliseconds."""
    return (instant - EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(millis: int) -> datetime:
    """Epoch milliseconds to naive UTC datetime."""
    return EPOCH + timedelta(milliseconds=millis)


class RateStore:
    """Persists the fetched rate set and the manual override table.

    The cached set lives in the key/value settings table; manual overrides
    have their own table. Clearing the cache never touches overrides.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        """Initialize the rate store.

        Args:
            db: Database session.
            clock: Source of the current naive UTC time.
        """
        self.db = db
        self.clock = clock

    def get_cache_timestamp(self) -> datetime | None:
        """When the current cache was written, if there is one."""
        value = settings_service.get_setting(self.db, KEY_CACHE_TIMESTAMP)
        if value is None:
            return None
        try:
            return from_epoch_millis(int(value))
        except ValueError:
            logger.warning(f"Ignoring unreadable cache timestamp {value!r}")
            return None

    def get_cached(self, base_currency: str) -> CachedRates | None:
        """Return whatever is cached for ``base_currency``.

        Staleness is not checked here; callers compare the timestamp
        against their own expiry.
        """
        base_currency = normalize_currency(base_currency)
        timestamp = self.get_cache_timestamp()
        raw = settings_service.get_setting(self.db, KEY_CACHED_RATES)
        if timestamp is None or raw is None:
            return None

        payload = self._decode(raw)
        if payload is None or payload.get("base") != base_currency:
            return None
        rates = payload.get("rates")
        if not isinstance(rates, dict):
            return None
        try:
            values = {str(code): float(rate) for code, rate in rates.items()}
        except (TypeError, ValueError):
            logger.warning("Ignoring cached rates with non-numeric values")
            return None
        return CachedRates(
            base_currency=base_currency, rates=values, timestamp=timestamp
        )

    def put(self, base_currency: str, rates: RateSet) -> CachedRates:
        """Replace the cached set and stamp it with the current time."""
        base_currency = normalize_currency(base_currency)
        timestamp = self.clock()
        payload = json.dumps({"base": base_currency, "rates": rates})
        settings_service.set_setting(self.db, KEY_CACHED_RATES, payload, commit=False)
        settings_service.set_setting(
            self.db,
            KEY_CACHE_TIMESTAMP,
            str(to_epoch_millis(timestamp)),
            commit=False,
        )
        self.db.commit()
        return CachedRates(
            base_currency=base_currency, rates=dict(rates), timestamp=timestamp
        )

    def clear(self) -> None:
        """Drop the cached rate set. Manual overrides are kept."""
        settings_service.delete_setting(self.db, KEY_CACHED_RATES, commit=False)
        settings_service.delete_setting(self.db, KEY_CACHE_TIMESTAMP, commit=False)
        self.db.commit()

    def get_manual_rate(
        self, base_currency: str, target_currency: str
    ) -> ManualExchangeRate | None:
        """Get the override for one pair."""
        return (
            self.db.query(ManualExchangeRate)
            .filter(
                ManualExchangeRate.base_currency == normalize_currency(base_currency),
                ManualExchangeRate.target_currency
                == normalize_currency(target_currency),
            )
            .first()
        )

    def list_manual_rates(
        self, base_currency: str | None = None
    ) -> list[ManualExchangeRate]:
        """List overrides, optionally only those for one base currency."""
        query = self.db.query(ManualExchangeRate)
        if base_currency is not None:
            query = query.filter(
                ManualExchangeRate.base_currency == normalize_currency(base_currency)
            )
        return query.order_by(
            ManualExchangeRate.base_currency, ManualExchangeRate.target_currency
        ).all()

    def upsert_manual_rate(
        self, base_currency: str, target_currency: str, rate: Any
    ) -> ManualExchangeRate:
        """Create or update the override for a pair.

        Raises:
            InvalidRate: If ``rate`` is not a positive finite number.
        """
        try:
            value = coerce_rate(rate)
        except ValueError as e:
            raise InvalidRate(str(e)) from e

        base_currency = normalize_currency(base_currency)
        target_currency = normalize_currency(target_currency)
        now = self.clock()

        existing = self.get_manual_rate(base_currency, target_currency)
        if existing:
            existing.rate = value
            existing.source = RateSource.MANUAL.value
            existing.updated_at = now
            entry = existing
        else:
            entry = ManualExchangeRate(
                base_currency=base_currency,
                target_currency=target_currency,
                rate=value,
                source=RateSource.MANUAL.value,
                created_at=now,
                updated_at=now,
            )
            self.db.add(entry)

        self.db.commit()
        self.db.refresh(entry)
        logger.info(f"Manual rate {base_currency}->{target_currency} set to {value}")
        return entry

    def delete_manual_rate(self, base_currency: str, target_currency: str) -> bool:
        """Delete one override. Deleting a missing pair is not an error."""
        deleted = (
            self.db.query(ManualExchangeRate)
            .filter(
                ManualExchangeRate.base_currency == normalize_currency(base_currency),
                ManualExchangeRate.target_currency
                == normalize_currency(target_currency),
            )
            .delete()
        )
        self.db.commit()
        return deleted > 0

    def delete_all_manual_rates(self) -> int:
        """Delete every manual override. Returns the number removed."""
        deleted = (
            self.db.query(ManualExchangeRate)
            .filter(ManualExchangeRate.source == RateSource.MANUAL.value)
            .delete()
        )
        self.db.commit()
        return deleted

    @staticmethod
    def _decode(raw: str) -> dict[str, Any] | None:
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable cached rates")
            return None
        return payload if isinstance(payload, dict) else None
