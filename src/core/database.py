from contextlib import asynccontextmanager
from typing import AsyncIterator

from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.config import get_settings
from src.core.lifespan import manager

REQUEST_POOL_SIZE = 10


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models"""

    pass


def create_engine(database_url: str, max_concurrent_fetches: int = 0) -> AsyncEngine:
    """Create the async engine for a database URL.

    Parameters
    ----------
    database_url : str
        SQLAlchemy URL, e.g. ``postgresql+asyncpg://...`` or
        ``sqlite+aiosqlite:///local.db``
    max_concurrent_fetches : int
        Scoring fetches that may each hold a connection while requests
        hold theirs

    Returns
    -------
    AsyncEngine
        Engine with a pool large enough for both
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        # SQLite pools are single-connection or per-thread; sizing does not apply
        return create_async_engine(database_url)

    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=REQUEST_POOL_SIZE,
        max_overflow=max(2 * REQUEST_POOL_SIZE, max_concurrent_fetches),
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory shared by request sessions and activity fetches."""
    return async_sessionmaker(engine, expire_on_commit=False)


@manager.add
@asynccontextmanager
async def database_lifespan() -> AsyncIterator[dict]:
    """Open the connection pool for the app and dispose it on shutdown."""
    settings = get_settings()

    engine = create_engine(
        settings.DATABASE_URL, settings.SCORING_MAX_CONCURRENT_FETCHES
    )
    logger.info(
        "Database connection pool ready",
        backend=engine.url.get_backend_name(),
        max_concurrent_fetches=settings.SCORING_MAX_CONCURRENT_FETCHES,
    )

    yield {"session_maker": create_session_maker(engine)}

    await engine.dispose()
    logger.info("Database disconnected")
