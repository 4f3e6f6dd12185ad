"""
Pytest fixtures for test database, client, actors and sample resources.

Each test gets a fresh SQLite file database (aiosqlite), so suites run
without PostgreSQL or Redis. Locks fall back to the in-process strategy.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_ENABLED"] = "false"
os.environ["LOCK_STRATEGY"] = "local"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from reservations.main import app
from reservations.db.base import Base
from reservations.db.session import get_db
from reservations.core.security import Actor, ActorRole
from reservations.models.resource import Resource

OWNER_ID = 100
OTHER_OWNER_ID = 101
CUSTOMER_ID = 1
OTHER_CUSTOMER_ID = 2


def _next_matching(start: date, weekdays: set[int]) -> date:
    day = start
    while day.weekday() not in weekdays:
        day += timedelta(days=1)
    return day


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reservations.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


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


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture
def customer() -> Actor:
    return Actor(id=CUSTOMER_ID, role=ActorRole.CUSTOMER)


@pytest.fixture
def other_customer() -> Actor:
    return Actor(id=OTHER_CUSTOMER_ID, role=ActorRole.CUSTOMER)


@pytest.fixture
def owner() -> Actor:
    return Actor(id=OWNER_ID, role=ActorRole.OWNER)


@pytest.fixture
def other_owner() -> Actor:
    return Actor(id=OTHER_OWNER_ID, role=ActorRole.OWNER)


def _headers(actor: Actor) -> dict:
    return {"X-Actor-Id": str(actor.id), "X-Actor-Role": actor.role.value}


@pytest.fixture
def customer_headers(customer) -> dict:
    return _headers(customer)


@pytest.fixture
def other_customer_headers(other_customer) -> dict:
    return _headers(other_customer)


@pytest.fixture
def owner_headers(owner) -> dict:
    return _headers(owner)


@pytest.fixture
def other_owner_headers(other_owner) -> dict:
    return _headers(other_owner)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@pytest.fixture
def open_day() -> date:
    """A Tuesday-Friday 2 to 8 days out: open for every sample resource."""
    return _next_matching(date.today() + timedelta(days=2), {1, 2, 3, 4})


@pytest.fixture
def next_monday() -> date:
    return _next_matching(date.today() + timedelta(days=1), {0})


@pytest.fixture
def next_saturday() -> date:
    return _next_matching(date.today() + timedelta(days=1), {5})


@pytest.fixture
def activity_days() -> list[date]:
    return [date.today() + timedelta(days=5), date.today() + timedelta(days=6)]


@pytest.fixture
def event_day() -> date:
    return date.today() + timedelta(days=10)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


async def _persist(db_session: AsyncSession, resource: Resource) -> Resource:
    db_session.add(resource)
    await db_session.commit()
    await db_session.refresh(resource)
    return resource


@pytest_asyncio.fixture
async def restaurant(db_session: AsyncSession) -> Resource:
    """Open 11:00-22:00, closed Mondays, seats 20 per booking."""
    return await _persist(db_session, Resource(
        kind="restaurant",
        name="Test Bistro",
        owner_id=OWNER_ID,
        capacity=20,
        open_time=1100,
        close_time=2200,
        closed_weekdays=["Monday"],
        offered_dates=[],
    ))


@pytest_asyncio.fixture
async def service(db_session: AsyncSession) -> Resource:
    """Open 09:00-17:00 on weekdays, one booking at a time."""
    return await _persist(db_session, Resource(
        kind="service",
        name="Test Massage",
        owner_id=OWNER_ID,
        capacity=1,
        open_time=900,
        close_time=1700,
        closed_weekdays=["Saturday", "Sunday"],
        offered_dates=[],
    ))


@pytest_asyncio.fixture
async def activity(db_session: AsyncSession, activity_days) -> Resource:
    """10 participants per offered date."""
    return await _persist(db_session, Resource(
        kind="activity",
        name="Test Kayak Tour",
        owner_id=OWNER_ID,
        capacity=10,
        closed_weekdays=[],
        offered_dates=[d.isoformat() for d in activity_days],
    ))


@pytest_asyncio.fixture
async def event(db_session: AsyncSession, event_day) -> Resource:
    """50 tickets on a single date."""
    return await _persist(db_session, Resource(
        kind="event",
        name="Test Concert",
        owner_id=OWNER_ID,
        capacity=50,
        closed_weekdays=[],
        offered_dates=[event_day.isoformat()],
    ))
