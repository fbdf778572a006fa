"""Shared test fixtures."""

import os
import tempfile
from datetime import datetime, timedelta

# Keep log files out of the working tree; must run before any app import
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="warroom-logs-"))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from warroom.database import build_engine
from warroom.engine.alert_configs import AlertConfigStore
from warroom.engine.analytics import AnalyticsEngine
from warroom.engine.broadcast_hub import BroadcastHub
from warroom.engine.incident_store import IncidentStore
from warroom.engine.query_engine import QueryEngine
from warroom.models.base import Base

BASE_TIME = datetime(2026, 10, 19, 12, 0, 0)


class FakeClock:
    """Settable clock returning naive UTC datetimes."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, value: datetime) -> datetime:
        self.now = value
        return value


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database per test (shared via StaticPool)."""
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hub():
    return BroadcastHub(max_subscribers=5, queue_size=10)


@pytest.fixture
def store(session_factory, hub, clock):
    return IncidentStore(db_session_factory=session_factory, hub=hub, clock=clock)


@pytest.fixture
def query_engine(session_factory):
    return QueryEngine(db_session_factory=session_factory)


@pytest.fixture
def analytics(session_factory, clock):
    return AnalyticsEngine(db_session_factory=session_factory, clock=clock)


@pytest.fixture
def alert_store(session_factory, clock):
    return AlertConfigStore(db_session_factory=session_factory, clock=clock)
