"""Scheduling engine.

Public API:
- SchedulePoller: polling loop that fires due schedules
- ActionExecutor: applies one schedule to its targets
- next_run: next occurrence of a schedule from its anchor

Types:
- TickResult: outcome of one poll tick
"""

from cue.scheduling.executor import ActionExecutor
from cue.scheduling.poller import SchedulePoller, TickResult, validate_interval
from cue.scheduling.recurrence import (
    RecurrenceError,
    next_run,
    repeat_step,
    validate_repeat,
)

__all__ = [
    "ActionExecutor",
    "RecurrenceError",
    "SchedulePoller",
    "TickResult",
    "next_run",
    "repeat_step",
    "validate_interval",
    "validate_repeat",
]
