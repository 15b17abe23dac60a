from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the billing database."""
    return create_async_engine(
        settings.async_database_url,
        echo=settings.app_env == "development",
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        connect_args={"statement_cache_size": 0},
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def build_redis(settings: Settings) -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True)


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session wrapped in a single transaction.

    Commits when the block exits cleanly and rolls back on any exception,
    so every write made inside the block lands together or not at all::

        async with transaction(session_factory) as session:
            session.add(invoice)
    """
    async with session_factory() as session:
        async with session.begin():
            yield session
