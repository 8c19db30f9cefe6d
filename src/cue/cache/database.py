"""Cache backend stored in the `cache_entries` table."""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from cue.db.engine import Database
from cue.db.models import CacheEntry, utc_now

logger = logging.getLogger(__name__)

# Backends with an INSERT ... ON CONFLICT DO UPDATE construct.
_DIALECT_INSERTS = {"sqlite": sqlite_insert, "postgresql": postgresql_insert}


class DatabaseCache:
    """Cache that survives restarts and is shared with other processes
    using the same database."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, key: str) -> str | None:
        async with self._db.session() as session:
            entry = await session.get(CacheEntry, key)
            if entry is None:
                logger.debug("cache_miss", extra={"cache.key": key})
                return None
            logger.debug("cache_hit", extra={"cache.key": key})
            return entry.value

    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite `key` in one statement.

        Concurrent misses on the same key from several processes both end up
        writing; the last write wins instead of failing on the primary key.
        """
        logger.debug("cache_set", extra={"cache.key": key})
        now = utc_now()
        async with self._db.session() as session:
            insert = _DIALECT_INSERTS.get(session.get_bind().dialect.name)
            if insert is None:
                await session.merge(CacheEntry(key=key, value=value, written_at=now))
                return
            stmt = insert(CacheEntry).values(key=key, value=value, written_at=now)
            await session.execute(
                stmt.on_conflict_do_update(
                    index_elements=[CacheEntry.key],
                    set_={"value": value, "written_at": now},
                )
            )

    async def delete(self, key: str) -> None:
        logger.debug("cache_delete", extra={"cache.key": key})
        async with self._db.session() as session:
            await session.execute(delete(CacheEntry).where(CacheEntry.key == key))

    async def clear(self) -> None:
        logger.debug("cache_clear")
        async with self._db.session() as session:
            await session.execute(delete(CacheEntry))

    async def count(self) -> int:
        async with self._db.session() as session:
            result = await session.execute(select(func.count()).select_from(CacheEntry))
            return result.scalar_one()
