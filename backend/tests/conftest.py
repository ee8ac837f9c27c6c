"""
Pytest fixtures for test database, hold stores, client, and authentication.

Each test gets a fresh in-memory SQLite database (aiosqlite) so tests are
isolated without a running PostgreSQL. Redis is disabled; the Redis hold
store is tested against fakeredis.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["HOLD_STORE"] = "sql"
os.environ["HOLD_SWEEP_ENABLED"] = "false"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis_aioredis
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from seat_reservation.main import app
from seat_reservation.db.base import Base
from seat_reservation.db.session import get_db
from seat_reservation.core.security import create_access_token
from seat_reservation.schemas.showtime import ShowtimeCreate
from seat_reservation.services.interfaces.sql_hold_store import SqlHoldStore
from seat_reservation.services.redis_hold_store import RedisHoldStore
from seat_reservation.services.showtime_service import create_showtime

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Fixed clock for tests that simulate expiry
T0 = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    """T0 + seconds."""
    return T0 + timedelta(seconds=seconds)


@pytest_asyncio.fixture(scope="function")
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session: AsyncSession) -> SqlHoldStore:
    return SqlHoldStore(db_session)


@pytest_asyncio.fixture
async def redis_client():
    client = fakeredis_aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def redis_store(redis_client) -> RedisHoldStore:
    return RedisHoldStore(redis_client)


@pytest_asyncio.fixture
async def showtime_id(db_session: AsyncSession) -> int:
    """A showtime with one row of three seats: 1:1, 1:2, 1:3."""
    showtime = await create_showtime(
        db_session,
        ShowtimeCreate(movie_title="Test Feature", rows=1, seats_per_row=3, base_price=Decimal("10.00")),
    )
    return showtime.id


@pytest_asyncio.fixture
async def big_showtime_id(db_session: AsyncSession) -> int:
    """Three rows of four seats, row A premium."""
    showtime = await create_showtime(
        db_session,
        ShowtimeCreate(
            movie_title="Big Screen",
            rows=3,
            seats_per_row=4,
            base_price=Decimal("12.00"),
            row_types={"A": "premium"},
            type_prices={"premium": Decimal("18.50")},
        ),
    )
    return showtime.id


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _headers_for(holder_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': holder_id})}"}


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for holder 'alice'."""
    return _headers_for("alice")


@pytest.fixture
def other_headers() -> dict:
    """Authorization headers for holder 'bob'."""
    return _headers_for("bob")
