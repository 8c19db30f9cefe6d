"""Store subsystem: persistence for schedules, runs, actions and tokens.

Public API:
- ScheduleStore, RunStore, TokenStore: protocols consumed by the engine
- SqlStore: SQLAlchemy implementation of all three
"""

from cue.store.protocols import RunStore, ScheduleStore, TokenStore
from cue.store.sql import SqlStore
from cue.store.types import (
    ASSIGN_ACTION,
    ActionRecord,
    ActionStatus,
    AuthToken,
    RepeatUnit,
    Run,
    Schedule,
    ScheduleNotFoundError,
    Target,
)

__all__ = [
    "ASSIGN_ACTION",
    "ActionRecord",
    "ActionStatus",
    "AuthToken",
    "RepeatUnit",
    "Run",
    "RunStore",
    "Schedule",
    "ScheduleNotFoundError",
    "ScheduleStore",
    "SqlStore",
    "Target",
    "TokenStore",
]
