"""Cache-aside wrapper for read-heavy API calls."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from cue.cache.base import Cache

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ResponseCache:
    """Serves reads from a cache backend, fetching and storing on a miss.

    Entries have no TTL. Callers decide when data may be stale and pass
    `skip_cache=True` to force a live fetch; that fetch is not written back.
    """

    def __init__(self, cache: Cache) -> None:
        self._cache = cache

    @property
    def backend(self) -> Cache:
        return self._cache

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        serialize: Callable[[T], Any],
        deserialize: Callable[[Any], T],
        skip_cache: bool = False,
    ) -> T:
        """Return the cached value for `key`, or fetch, store and return it.

        Args:
            key: Logical resource key, e.g. "zones" or "account:<id>:library".
            fetch: Live fetch performed on a miss or when skipping the cache.
            serialize: Converts the fetched value to JSON-compatible data.
            deserialize: Rebuilds the value from cached JSON data.
            skip_cache: Bypass both the cache read and the write-through.
        """
        if skip_cache:
            logger.debug("cache_skipped", extra={"cache.key": key})
            return await fetch()

        cached = await self._cache.get(key)
        if cached is not None:
            try:
                return deserialize(json.loads(cached))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(
                    "cache_entry_invalid",
                    extra={"cache.key": key, "error.message": str(e)},
                )
                await self._cache.delete(key)

        value = await fetch()
        await self._cache.set(key, json.dumps(serialize(value)))
        return value

    async def invalidate(self, key: str) -> None:
        await self._cache.delete(key)

    async def clear(self) -> None:
        logger.info("cache_cleared")
        await self._cache.clear()

    async def count(self) -> int:
        return await self._cache.count()
