"""
Async database engine.

The engine is created lazily from DATABASE_URL the first time it is needed
and shared by every request handler and background task in the process.
"""

import logging
import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 10
DEFAULT_POOL_TIMEOUT_SECONDS = 3

_engine: AsyncEngine | None = None


def normalize_database_url(database_url: str) -> str:
    """Rewrite plain postgres URLs to use the asyncpg driver."""
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://") :]
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Return the process-wide engine, creating it on first use.

    Args:
        database_url: Overrides DATABASE_URL when the engine is first created

    Raises:
        RuntimeError: If no database URL is configured
    """
    global _engine

    if _engine is not None:
        return _engine

    url = database_url or os.environ.get("DATABASE_URL", "")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")

    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        _engine = create_async_engine(url)
    else:
        _engine = create_async_engine(
            url,
            pool_size=DEFAULT_POOL_SIZE,
            pool_timeout=DEFAULT_POOL_TIMEOUT_SECONDS,
            pool_pre_ping=True,
        )
    logger.info("Database engine created for %s", _engine.url.render_as_string())
    return _engine


async def close_engine() -> None:
    """Dispose of the engine and its pool."""
    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None
