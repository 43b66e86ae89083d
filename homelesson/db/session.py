"""
Async SQLAlchemy engine & session factory, owned by a ``Database`` object.

The application builds one ``Database`` at startup, keeps it on
``app.state.database`` and disposes it on shutdown.  Request handlers get a
session from it through the ``get_db`` dependency.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from homelesson.core.config import settings
from homelesson.db.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    # SQLite ignores ON DELETE clauses unless this is set per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Connection pool plus session factory for one database URL."""

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        engine_args: dict[str, Any] = {
            "echo": False,
            "pool_pre_ping": True,
        }
        if "postgresql" in url:
            engine_args.update(
                {
                    "pool_size": settings.DB_POOL_SIZE,
                    "max_overflow": settings.DB_MAX_OVERFLOW,
                    "pool_timeout": settings.DB_POOL_TIMEOUT,
                    "pool_recycle": settings.DB_POOL_RECYCLE,
                }
            )
        engine_args.update(engine_kwargs)

        self.url = url
        self.engine = create_async_engine(url, **engine_args)
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield an AsyncSession and close it (returning its connection) after use."""
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database ping failed: %s", e)
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything done inside the block, or roll all of it back.

    The rollback runs for any exception, after which the exception is
    re-raised unchanged.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
