"""Async SQLAlchemy engine and session handling for the cue database."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cue.db.models import Base

logger = logging.getLogger(__name__)


def sqlite_url(path: Path) -> str:
    """aiosqlite URL for a database file, creating its directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{path}"


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and hands out transactional sessions.

    One instance is created per process by the composition root and shared
    by the store and the database cache.
    """

    def __init__(
        self, database_url: str | None = None, database_path: Path | None = None
    ):
        if database_url:
            self._url = database_url
        elif database_path:
            self._url = sqlite_url(database_path)
        else:
            raise ValueError("Database needs a database_url or a database_path")
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_sqlite(self) -> bool:
        return self._url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._sessions

    async def connect(self) -> None:
        """Create the engine. Calling it on a connected database is a no-op."""
        if self._engine is not None:
            return
        engine = create_async_engine(self._url, pool_pre_ping=True)
        if self.is_sqlite:
            # Targets and actions cascade with their schedule/run.
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        logger.debug("database_connected", extra={"db.sqlite": self.is_sqlite})

    async def disconnect(self) -> None:
        engine, self._engine, self._sessions = self._engine, None, None
        if engine is not None:
            await engine.dispose()
            logger.debug("database_disconnected")

    async def create_all(self) -> None:
        """Create missing tables; existing tables are left untouched."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """A session that commits on success and rolls back on error.

        Usage:
            async with db.session() as session:
                session.add(row)
        """
        async with self.session_factory() as session, session.begin():
            yield session
