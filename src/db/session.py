"""
Database engine and sessions for the commission catalog.

Calculations only read the catalog; the ledger statements they produce are
returned to the caller, not executed here.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings

logger = logging.getLogger(__name__)


def engine_options(database_url: str, is_production: bool = False) -> Dict[str, Any]:
    """
    Keyword arguments for `create_async_engine`.

    asyncpg gets its prepared statement cache disabled so the service can sit
    behind a transaction pooler. Other drivers (aiosqlite in tests) take no
    connect args.
    """
    options: Dict[str, Any] = {
        "poolclass": NullPool,
        "echo": not is_production,
    }
    if "+asyncpg" in database_url:
        options["connect_args"] = {"statement_cache_size": 0}
    return options


engine = create_async_engine(
    settings.database_url,
    **engine_options(settings.database_url, settings.is_production),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session that commits on exit and rolls back if the block raises.

    Used directly at startup (catalog seeding) and behind `get_db`.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back catalog session")
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one catalog session per request."""
    async with get_db_context() as session:
        yield session
