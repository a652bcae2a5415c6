"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import backend.app.models  # noqa: F401  (registers the tables)
from backend.app.api import deps
from backend.app.db.base import Base, get_db
from backend.app.main import app
from backend.app.security import totp
from backend.app.security.sessions import SessionManager

# Start of a 30-second TOTP window (epoch seconds divisible by 30)
START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock callable that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def timestamp(self) -> float:
        return self.current.timestamp()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test (single shared connection)."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the test database and the frozen clock."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[deps.get_clock] = lambda: clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def session_token(db, clock) -> str:
    """A live admin session created at the current frozen time."""
    return await SessionManager(db, clock=clock).create_session()


class Authenticator:
    """Plays the admin's authenticator app against the frozen clock."""

    def __init__(self, clock: FrozenClock):
        self.clock = clock

    def code(self, secret: str) -> str:
        return totp.compute_code(totp.decode_shared_secret(secret), for_time=self.clock.timestamp())

    def wrong_code(self, secret: str) -> str:
        """A 6-digit code valid for neither the current nor the previous window."""
        key = totp.decode_shared_secret(secret)
        accepted = {
            totp.compute_code(key, for_time=self.clock.timestamp()),
            totp.compute_code(key, for_time=self.clock.timestamp(), counter_offset=-1),
        }
        return next(c for c in ("000000", "111111", "222222") if c not in accepted)


@pytest.fixture
def authenticator(clock) -> Authenticator:
    return Authenticator(clock)
