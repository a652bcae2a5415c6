# backend/app/db/session.py
"""
Async database session management for SQLAlchemy.

- asyncpg for PostgreSQL (production)
- aiosqlite for SQLite (local development fallback)

Every request gets its own session; nothing security-relevant
(secret, session validity, attempt counts) is cached between requests.
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from backend.app.core.config import settings


def _create_async_engine() -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    SQLite (local development):
    - NullPool, check_same_thread=False for async compatibility

    PostgreSQL (production):
    - AsyncAdaptedQueuePool (pool_size=5, max_overflow=10)
    - pool_pre_ping=True to drop stale connections
    - pool_recycle=300 for hosts that close idle connections
    """
    if settings.is_sqlite:
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


engine: AsyncEngine = _create_async_engine()


# expire_on_commit=False: attributes stay readable after commit
# autoflush=False: explicit flush control
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Usage in FastAPI endpoints:
        @router.post("/items")
        async def create_item(db: AsyncSession = Depends(get_db)):
            ...

    This does NOT auto-commit. Callers commit explicitly.
    """
    async with AsyncSessionLocal() as session:
        yield session
