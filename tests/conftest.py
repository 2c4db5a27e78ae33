# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set test environment before importing app
os.environ["TRAVELFX_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["TRAVELFX_BASE_CURRENCY"] = "CHF"

from travelfx.api.deps import get_currency_service, get_db
from travelfx.main import app
from travelfx.models import ConnectionType
from travelfx.models.base import Base
from travelfx.services.currency_service import CurrencyService
from travelfx.services.exceptions import AllProvidersExhausted, ProviderFetchFailed
from travelfx.services.rate_fetcher import FetchedRates, ProviderChainFetcher
from travelfx.services.rate_store import RateStore
from travelfx.services.reachability import (
    ConnectivityProbe,
    NetworkState,
    ReachabilityGate,
)
from travelfx.services.settings_store import SettingsStore

# Test database setup
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubProbe(ConnectivityProbe):
    """Connectivity probe with a fixed answer."""

    def __init__(
        self,
        reachable: bool = True,
        connection_type: ConnectionType = ConnectionType.WIFI,
    ) -> None:
        self.state = NetworkState(reachable=reachable, connection_type=connection_type)
        self.calls = 0

    async def check(self) -> NetworkState:
        self.calls += 1
        return self.state


class StubFetcher(ProviderChainFetcher):
    """Fetcher returning canned rates and counting invocations."""

    def __init__(self, rates: dict[str, float] | None = None) -> None:
        super().__init__(providers=[])
        self.rates = rates
        self.calls: list[str] = []

    async def fetch(self, base_currency: str) -> FetchedRates:
        self.calls.append(base_currency)
        if self.rates is None:
            raise AllProvidersExhausted(
                base_currency, [ProviderFetchFailed("stub", "offline")]
            )
        return FetchedRates(
            base_currency=base_currency, rates=dict(self.rates), provider="stub"
        )


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 1, 15, 12, 0, 0))


@pytest.fixture
def rate_store(db_session, clock) -> RateStore:
    return RateStore(db_session, clock=clock)


@pytest.fixture
def settings_store(db_session) -> SettingsStore:
    return SettingsStore(db_session)


@pytest.fixture
def make_probe():
    """Factory for stub probes with a chosen network state."""
    return StubProbe


@pytest.fixture
def probe() -> StubProbe:
    return StubProbe()


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher({"CHF": 1.0, "EUR": 0.95, "USD": 1.15, "GBP": 0.85})


@pytest.fixture
def currency_service(rate_store, settings_store, probe, fetcher, clock) -> CurrencyService:
    """Currency service with stubbed network collaborators."""
    return CurrencyService(
        rate_store=rate_store,
        settings_store=settings_store,
        gate=ReachabilityGate(probe),
        fetcher=fetcher,
        base_currency="CHF",
        clock=clock,
    )


@pytest.fixture(scope="function")
def client(db_session, currency_service):
    """Create a test client with database and service overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_get_currency_service():
        return currency_service

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_currency_service] = override_get_currency_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
