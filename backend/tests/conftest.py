"""
Pytest fixtures for test database, client, clock and seat catalog.

Each test gets a fresh SQLite file database (set TEST_DATABASE_URL to run
against PostgreSQL instead). The clock is frozen at 2024-06-01 09:00 UTC.
"""

import os

# Must be set before app settings are first read
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SWEEP_SCHEDULER_ENABLED", "false")
os.environ.setdefault("SEED_SEATS_ON_STARTUP", "false")

from datetime import date, datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.main import app
from app.core.clock import FrozenClock, get_clock
from app.data.seat_catalog import CatalogEntry
from app.db.base import Base
from app.db.session import get_db
from app.models.seat import SeatKind
from app.services.seat_service import initialize_seats

TODAY = date(2024, 6, 1)

# Ten seats: the projection tests rely on this size
TEST_CATALOG = [
    CatalogEntry("E1-11", SeatKind.SEAT, 100, 100),
    CatalogEntry("E1-12", SeatKind.SEAT, 150, 100),
    CatalogEntry("E2-8", SeatKind.SEAT, 200, 100),
    CatalogEntry("F1-5", SeatKind.SEAT, 300, 100),
    CatalogEntry("F1-6", SeatKind.SEAT, 350, 100),
    CatalogEntry("F2-2", SeatKind.SEAT, 400, 100),
    CatalogEntry("Q1", SeatKind.QUIET, 500, 300),
    CatalogEntry("T1", SeatKind.TOUCHDOWN, 600, 300),
    CatalogEntry("APR207", SeatKind.MEETING_ROOM, 470, 120),
    CatalogEntry("APR208", SeatKind.MEETING_ROOM, 470, 180),
]


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield the engine, then drop tables for isolation."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc), "UTC")


@pytest_asyncio.fixture
async def seats(session_factory) -> list[CatalogEntry]:
    """Load the ten-seat test catalog."""
    async with session_factory() as session:
        await initialize_seats(session, TEST_CATALOG)
    return TEST_CATALOG


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, clock: FrozenClock, seats) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB session and clock dependencies overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
