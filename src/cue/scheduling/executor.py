"""Applies one schedule's assignment to its targets."""

import logging
from typing import Protocol

from cue.store.protocols import RunStore, ScheduleStore
from cue.store.types import ASSIGN_ACTION, ActionRecord, ActionStatus, Schedule

logger = logging.getLogger(__name__)


class MusicAssigner(Protocol):
    async def assign_music(self, zone_id: str, play_from_id: str) -> None: ...


class ActionExecutor:
    """Pushes a schedule's music to each enabled target.

    Every target gets one ActionRecord, whatever the outcome. A failing
    target is recorded as an error and never stops the remaining targets;
    neither does a target whose record cannot be written, which is logged
    and left out of the returned list.
    """

    def __init__(
        self,
        api: MusicAssigner,
        schedules: ScheduleStore,
        runs: RunStore,
    ) -> None:
        self._api = api
        self._schedules = schedules
        self._runs = runs

    async def execute(self, run_id: int, schedule: Schedule) -> list[ActionRecord]:
        play_from_id = schedule.assign
        if not play_from_id:
            logger.info(
                "schedule_nothing_to_assign", extra={"schedule.id": schedule.id}
            )
            return []

        targets = await self._schedules.list_targets(schedule.id, enabled_only=True)
        logger.info(
            "schedule_executing",
            extra={
                "schedule.id": schedule.id,
                "run.id": run_id,
                "schedule.target_count": len(targets),
            },
        )

        records: list[ActionRecord] = []
        for target in targets:
            status = ActionStatus.SUCCESS
            error: str | None = None
            try:
                await self._api.assign_music(target.zone_id, play_from_id)
                logger.info(
                    "zone_assigned",
                    extra={
                        "schedule.id": schedule.id,
                        "zone.id": target.zone_id,
                        "assign.id": play_from_id,
                    },
                )
            except Exception as e:
                status = ActionStatus.ERROR
                error = str(e) or type(e).__name__
                logger.warning(
                    "zone_assign_failed",
                    extra={
                        "schedule.id": schedule.id,
                        "zone.id": target.zone_id,
                        "error.message": error,
                        "error.type": type(e).__name__,
                    },
                )

            try:
                record = await self._runs.record_action(
                    run_id=run_id,
                    schedule_id=schedule.id,
                    zone_id=target.zone_id,
                    account_id=target.account_id,
                    action=ASSIGN_ACTION,
                    data={"playFromId": play_from_id},
                    status=status,
                    error=error,
                )
            except Exception as e:
                logger.error(
                    "action_record_failed",
                    extra={
                        "schedule.id": schedule.id,
                        "run.id": run_id,
                        "zone.id": target.zone_id,
                        "action.status": status,
                        "error.message": str(e),
                    },
                )
                continue
            records.append(record)
        return records
