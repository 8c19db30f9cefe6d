"""Process-local cache backend."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedValue:
    value: str
    written_at: datetime


class InMemoryCache:
    """Dictionary-backed cache. Entries are lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, CachedValue] = {}

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            logger.debug("cache_miss", extra={"cache.key": key})
            return None
        logger.debug("cache_hit", extra={"cache.key": key})
        return entry.value

    async def set(self, key: str, value: str) -> None:
        logger.debug("cache_set", extra={"cache.key": key})
        self._data[key] = CachedValue(value=value, written_at=datetime.now(UTC))

    async def delete(self, key: str) -> None:
        logger.debug("cache_delete", extra={"cache.key": key})
        self._data.pop(key, None)

    async def clear(self) -> None:
        logger.debug("cache_clear")
        self._data.clear()

    async def count(self) -> int:
        return len(self._data)
