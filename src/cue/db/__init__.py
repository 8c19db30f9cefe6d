"""Database layer."""

from cue.db.engine import Database
from cue.db.models import (
    Action,
    AuthToken,
    Base,
    CacheEntry,
    Run,
    Schedule,
    Target,
)

__all__ = [
    # Engine
    "Database",
    # Models
    "Action",
    "AuthToken",
    "Base",
    "CacheEntry",
    "Run",
    "Schedule",
    "Target",
]
