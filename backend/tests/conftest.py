"""Shared test configuration and fixtures.

Each test gets its own throwaway database:
- By default a SQLite file under pytest's ``tmp_path`` (via aiosqlite), with
  foreign keys switched on so ``ON DELETE CASCADE`` behaves as on PostgreSQL.
- Set ``TEST_DATABASE_URL`` to run against a PostgreSQL test database
  instead; tables are dropped and recreated around every test.

Booking and reservation writes open their own sessions, so fixtures commit
what they create instead of relying on a rolled-back outer transaction.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import date, time, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.auth.jwt import create_token_pair
from app.auth.passwords import hash_password
from app.database import Base, get_session_factory
from app.main import app
from app.models.availability import WeeklyAvailability
from app.models.property import Property
from app.models.user import User
from app.services.availability import Weekday

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine on an empty database with all tables in place."""
    if TEST_DATABASE_URL:
        engine = create_async_engine(TEST_DATABASE_URL, pool_pre_ping=True)
    else:
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'immobooking_test.db'}")
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database, as handed to the services."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for read-side service calls and direct inserts.

    Tests that insert through it must commit before calling a service that
    opens its own session.
    """
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: authenticated administrator
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create and return an administrator directly in the DB."""
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=f"admin-{unique}@test.com",
        hashed_password=hash_password("testpass123"),
        name="Test Admin",
        is_active=True,
        role="admin",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Return Authorization headers for the test administrator."""
    tokens = create_token_pair(str(test_user.id), test_user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


# ---------------------------------------------------------------------------
# Convenience fixtures: properties, template, dates
# ---------------------------------------------------------------------------


async def _create_property(db_session: AsyncSession, title: str, listing_type: str, price: str) -> Property:
    prop = Property(
        title=title,
        listing_type=listing_type,
        price=Decimal(price),
        location="Annecy",
        bedrooms=3,
        area=95,
        description=f"{title} used by automated tests.",
        images=[],
        features=["balcony"],
    )
    db_session.add(prop)
    await db_session.commit()
    await db_session.refresh(prop)
    return prop


@pytest_asyncio.fixture
async def rental_property(db_session: AsyncSession) -> Property:
    """A short-term rental, bookable for stays."""
    return await _create_property(db_session, "Lake Chalet", "short_term_rental", "180.00")


@pytest_asyncio.fixture
async def sale_property(db_session: AsyncSession) -> Property:
    """A property for sale, bookable for visits."""
    return await _create_property(db_session, "Old Town Apartment", "sale", "420000.00")


@pytest_asyncio.fixture
async def long_term_property(db_session: AsyncSession) -> Property:
    """A long-term rental, bookable for visits."""
    return await _create_property(db_session, "Garden Flat", "long_term_rental", "1350.00")


@pytest_asyncio.fixture
async def weekday_template(db_session: AsyncSession) -> list[WeeklyAvailability]:
    """Monday to Friday, 09:00-17:00."""
    rows = [
        WeeklyAvailability(day_of_week=day, start_time=time(9), end_time=time(17), is_active=True)
        for day in (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY)
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest.fixture
def next_monday() -> date:
    """A Monday at least a week ahead, so every slot on it is in the future."""
    today = date.today()
    return today + timedelta(days=14 - today.weekday())


@pytest.fixture
def next_sunday(next_monday: date) -> date:
    return next_monday + timedelta(days=6)
