"""Response caching for Soundtrack API reads.

Public API:
- ResponseCache: cache-aside wrapper used by SoundtrackApi
- InMemoryCache, DatabaseCache: backends
"""

from cue.cache.base import Cache
from cue.cache.database import DatabaseCache
from cue.cache.memory import InMemoryCache
from cue.cache.response import ResponseCache

__all__ = [
    "Cache",
    "DatabaseCache",
    "InMemoryCache",
    "ResponseCache",
]
