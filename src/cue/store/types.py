"""Value types for schedules, targets, runs and actions.

These are plain immutable structs. Changes go through explicit store calls
(`update_schedule`, `set_next_run`, ...) rather than mutating instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class RepeatUnit(StrEnum):
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"


class ActionStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


ASSIGN_ACTION = "assign"


@dataclass(frozen=True)
class Target:
    """A (zone, account) pair a schedule applies to."""

    id: int
    schedule_id: int
    zone_id: str
    account_id: str
    disabled_at: datetime | None = None

    @property
    def enabled(self) -> bool:
        return self.disabled_at is None


@dataclass(frozen=True)
class Schedule:
    """A recurring or one-shot music assignment.

    `repeat` and `repeat_unit` are either both set or both None.
    """

    id: int
    name: str
    description: str | None = None
    at: datetime | None = None
    next_run: datetime | None = None
    repeat: int | None = None
    repeat_unit: RepeatUnit | None = None
    assign: str | None = None
    disabled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    targets: tuple[Target, ...] = ()

    @property
    def is_recurring(self) -> bool:
        return self.repeat is not None and self.repeat_unit is not None

    @property
    def enabled(self) -> bool:
        return self.disabled_at is None


@dataclass(frozen=True)
class ActionRecord:
    """Audit outcome of applying one schedule to one target during one run."""

    id: int
    run_id: int
    schedule_id: int
    zone_id: str
    account_id: str
    action: str
    data: dict[str, Any]
    status: ActionStatus
    error: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Run:
    """One execution of the poll loop."""

    id: int
    created_at: datetime
    actions: tuple[ActionRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AuthToken:
    """User-mode credential triple."""

    token: str
    expires_at: datetime
    refresh_token: str


class ScheduleNotFoundError(LookupError):
    """No schedule exists with the requested id."""

    def __init__(self, schedule_id: int):
        self.schedule_id = schedule_id
        super().__init__(f"Schedule not found: {schedule_id}")
