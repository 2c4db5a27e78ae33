# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for the cache status reporter."""

import pytest

from travelfx.schemas.settings import UpdateSettingsUpdate
from travelfx.services.cache_status import (
    CacheStatusReporter,
    format_cache_age,
    is_expired,
)


@pytest.fixture
def reporter(rate_store, settings_store, clock):
    return CacheStatusReporter(rate_store, settings_store, clock)


def test_no_cache(reporter):
    """Should report a missing cache as expired with no age."""
    status = reporter.status()
    assert status.has_cache is False
    assert status.age_ms is None
    assert status.is_expired is True
    assert status.last_update is None


def test_fresh_cache(reporter, rate_store, clock):
    """Should report the age of a fresh cache."""
    rate_store.put("CHF", {"EUR": 0.93})
    clock.advance(minutes=30)

    status = reporter.status()

    assert status.has_cache is True
    assert status.age_ms == 30 * 60_000
    assert status.is_expired is False


@pytest.mark.parametrize(("hours", "offset_ms", "expired"), [
    (24, -1, False),
    (24, 0, False),
    (24, 1, True),
    (1, -1, False),
    (1, 1, True),
])
def test_ttl_boundary(reporter, rate_store, settings_store, clock, hours, offset_ms, expired):
    """Should expire only once the age is strictly past the window."""
    settings_store.update(UpdateSettingsUpdate(cache_expiry_hours=hours))
    rate_store.put("CHF", {"EUR": 0.93})
    clock.advance(milliseconds=hours * 3_600_000 + offset_ms)

    status = reporter.status()

    assert status.age_ms == hours * 3_600_000 + offset_ms
    assert status.is_expired is expired


def test_last_update_comes_from_settings(reporter, settings_store, clock):
    """Should take last_update from the settings store."""
    settings_store.record_successful_update(clock.now)
    assert reporter.status().last_update == clock.now


def test_status_does_not_mutate(reporter, rate_store, db_session):
    """Should not write anything while reporting."""
    rate_store.put("CHF", {"EUR": 0.93})
    reporter.status()
    assert not db_session.dirty
    assert not db_session.new


def test_is_expired():
    """Should compare age against the expiry in hours."""
    assert is_expired(3_600_000, 1) is False
    assert is_expired(3_600_001, 1) is True


@pytest.mark.parametrize(("age_ms", "expected"), [
    (None, "no cache"),
    (10_000, "just now"),
    (5 * 60_000, "5 min"),
    (3 * 3_600_000, "3 h"),
    (49 * 3_600_000, "2 d"),
])
def test_format_cache_age(age_ms, expected):
    """Should format the age for display."""
    assert format_cache_age(age_ms) == expected
