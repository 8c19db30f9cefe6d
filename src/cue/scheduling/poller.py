"""Schedule poller: the top-level loop that fires due schedules.

Each tick creates a Run, executes every due schedule in turn and moves its
next_run forward. The next tick is armed `interval` seconds after the
previous one finished, so slow ticks delay the cadence instead of piling up.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cue.config.models import ConfigError
from cue.scheduling.executor import ActionExecutor
from cue.scheduling.recurrence import RecurrenceError, next_run, validate_repeat
from cue.store.protocols import RunStore, ScheduleStore
from cue.store.types import ActionRecord, Schedule

logger = logging.getLogger(__name__)

# Heartbeat every 60 ticks (one hour at the default 60s interval)
HEARTBEAT_TICKS = 60


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class TickResult:
    """Outcome of one poll tick."""

    run_id: int
    due: int = 0
    actions: list[ActionRecord] = field(default_factory=list)
    failed_schedule_ids: list[int] = field(default_factory=list)


class SchedulePoller:
    """Polls the store for due schedules and executes them.

    Example:
        poller = SchedulePoller(executor, store, store, interval=60)
        await poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        executor: ActionExecutor,
        schedules: ScheduleStore,
        runs: RunStore,
        interval: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._executor = executor
        self._schedules = schedules
        self._runs = runs
        self._interval = interval
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None
        self._stopped = asyncio.Event()
        self._tick_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval(self) -> int:
        return self._interval

    async def start(self) -> None:
        """Validate the interval and start polling in the background.

        Raises:
            ConfigError: If the interval is not a positive number of seconds.
        """
        if self._running:
            return
        validate_interval(self._interval)
        self._running = True
        self._stopped.clear()
        logger.info("poller_started", extra={"poller.interval_s": self._interval})
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Cancel the pending timer and wait for an in-flight tick to finish."""
        if not self._running:
            return
        logger.info("poller_stopping")
        self._running = False
        self._stopped.set()
        if self._task:
            await self._task
            self._task = None

    async def _poll_loop(self) -> None:
        while self._running:
            await self._safe_tick()
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self._interval)
            except TimeoutError:
                pass

    async def _safe_tick(self) -> None:
        start = time.monotonic()
        try:
            await self.tick()
        except Exception as e:
            logger.error(
                "tick_failed",
                extra={"error.message": str(e), "error.type": type(e).__name__},
            )
        took_ms = round((time.monotonic() - start) * 1000)
        logger.info("tick_done", extra={"tick.duration_ms": took_ms})

    async def tick(self) -> TickResult:
        """Run one poll: execute every due schedule and advance its next_run.

        A schedule whose execution or rescheduling fails is logged and
        skipped; the remaining schedules still run.
        """
        self._tick_count += 1
        if self._tick_count % HEARTBEAT_TICKS == 0:
            logger.info("poller_heartbeat", extra={"poller.ticks": self._tick_count})

        run = await self._runs.create_run()
        result = TickResult(run_id=run.id)
        logger.info("run_created", extra={"run.id": run.id})

        due = await self._schedules.list_due(self._clock())
        result.due = len(due)
        if not due:
            logger.info("no_schedules_due", extra={"run.id": run.id})
            return result

        for schedule in due:
            try:
                result.actions.extend(await self._executor.execute(run.id, schedule))
            except Exception as e:
                result.failed_schedule_ids.append(schedule.id)
                logger.error(
                    "schedule_execution_failed",
                    extra={
                        "schedule.id": schedule.id,
                        "run.id": run.id,
                        "error.message": str(e),
                    },
                )

            try:
                await self._reschedule(schedule)
            except Exception as e:
                if schedule.id not in result.failed_schedule_ids:
                    result.failed_schedule_ids.append(schedule.id)
                logger.error(
                    "schedule_reschedule_failed",
                    extra={"schedule.id": schedule.id, "error.message": str(e)},
                )

        return result

    async def _reschedule(self, schedule: Schedule) -> None:
        """Persist the schedule's next occurrence after it fired.

        The occurrence is computed from the original anchor, not the time of
        this run. Schedules without a repeat are cleared and will not fire
        again until edited.
        """
        if schedule.repeat is None and schedule.repeat_unit is None:
            logger.info("schedule_next_run_cleared", extra={"schedule.id": schedule.id})
            await self._schedules.set_next_run(schedule.id, None)
            return

        following: datetime | None = None
        try:
            repeat, unit = validate_repeat(schedule.repeat, schedule.repeat_unit)
            following = next_run(schedule.at, repeat, unit, self._clock())
            if following is None:
                raise RecurrenceError("schedule has no anchor time")
        except RecurrenceError as e:
            logger.error(
                "next_run_computation_failed",
                extra={"schedule.id": schedule.id, "error.message": str(e)},
            )
            await self._schedules.set_next_run(schedule.id, None)
            return

        logger.info(
            "schedule_next_run_set",
            extra={
                "schedule.id": schedule.id,
                "schedule.next_run": following.isoformat(),
                "schedule.repeat": f"{repeat} {unit}",
            },
        )
        await self._schedules.set_next_run(schedule.id, following)


def validate_interval(interval: object) -> int:
    """Check a poll interval at startup.

    Raises:
        ConfigError: If the interval is not a positive integer.
    """
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise ConfigError(
            f"Invalid worker interval: {interval!r}, must be a positive integer"
        )
    return interval
