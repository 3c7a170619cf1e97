"""Database connection and session management.

Persistence is *optional*: when the database is unreachable the application
keeps serving calculations and the session endpoints fall back to an
in-process store.
"""

from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from thaitax.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engine & session factory
# ---------------------------------------------------------------------------
_engine = None
_async_session_factory = None
_db_available: bool = False


async def init_db(database_url: str | None = None) -> None:
    """Create the engine and session factory, then create missing tables."""
    global _engine, _async_session_factory, _db_available

    url = database_url or settings.DATABASE_URL
    try:
        _engine = create_async_engine(url, echo=False, pool_pre_ping=True)
        _async_session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with _engine.begin() as conn:
            from thaitax.models.db_models import Base
            await conn.run_sync(Base.metadata.create_all)

        _db_available = True
        logger.info("Database connection established (%s).", _engine.url.get_backend_name())
    except Exception as exc:
        _db_available = False
        logger.warning(
            "Database unavailable, sessions are kept in memory. Error: %s",
            exc,
        )


async def close_db() -> None:
    """Dispose of the connection pool."""
    global _engine, _async_session_factory, _db_available
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database connection pool closed.")
    _engine = None
    _async_session_factory = None
    _db_available = False


def is_db_available() -> bool:
    return _db_available


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession | None, None]:
    """Yield an async session if the database is available, otherwise None."""
    if not _db_available or _async_session_factory is None:
        yield None
        return

    session = _async_session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
