"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models carry no
PostgreSQL-only column types, so the real metadata is created directly.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.entities import Location, RouteMetrics
from src.infrastructure.cache import InMemoryCache
from src.infrastructure.database import Base

# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DB_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeDistanceOracle:
    """Returns canned metrics (or raises) and records every call."""

    def __init__(self, miles: float = 10.0, minutes: int = 20, error: Optional[Exception] = None):
        self.metrics = RouteMetrics(miles=miles, minutes=minutes)
        self.error = error
        self.calls: list[tuple[Location, Location, tuple[Location, ...]]] = []

    async def route_metrics(
        self, origin: Location, destination: Location, waypoints: Sequence[Location] = ()
    ) -> RouteMetrics:
        self.calls.append((origin, destination, tuple(waypoints)))
        if self.error is not None:
            raise self.error
        return self.metrics


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory() -> async_sessionmaker:
    """The factory the ``client`` fixture's requests use; for seeding API tests."""
    return TestSessionFactory


@pytest.fixture
def oracle() -> FakeDistanceOracle:
    return FakeDistanceOracle()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def client(oracle: FakeDistanceOracle) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by SQLite, an in-memory cache and a fake oracle."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def _test_db():
        async with TestSessionFactory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    from src.api.app import create_app
    from src.api.dependencies import get_db
    from src.api.middleware import limiter

    limiter.reset()

    app = create_app(cache=InMemoryCache(), distance_oracle=oracle, start_warmer=False)
    app.dependency_overrides[get_db] = _test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
