"""SQLAlchemy-backed implementation of the store protocols."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import selectinload

from cue.db import models
from cue.db.engine import Database
from cue.db.models import utc_now
from cue.scheduling.recurrence import next_run, validate_repeat
from cue.store.mappers import (
    row_to_action,
    row_to_run,
    row_to_schedule,
    row_to_target,
    row_to_token,
)
from cue.store.types import (
    ActionRecord,
    ActionStatus,
    AuthToken,
    RepeatUnit,
    Run,
    Schedule,
    ScheduleNotFoundError,
    Target,
)

logger = logging.getLogger(__name__)

# The auth_tokens table holds a single row.
TOKEN_KEY = 0

_UPDATABLE_FIELDS = frozenset(
    {"name", "description", "at", "repeat", "repeat_unit", "assign", "disabled_at"}
)
_TIMING_FIELDS = frozenset({"at", "repeat", "repeat_unit"})


class SqlStore:
    """Schedule, run and token storage on top of `Database`.

    Every operation opens its own session, so the store is safe to share
    between the poller and ad-hoc CLI commands in one process.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    async def create_schedule(
        self,
        name: str,
        *,
        description: str | None = None,
        at: datetime | None = None,
        repeat: int | None = None,
        repeat_unit: RepeatUnit | str | None = None,
        assign: str | None = None,
    ) -> Schedule:
        if not name:
            raise ValueError("Schedule name cannot be empty")
        repeat, unit = validate_repeat(repeat, repeat_unit)

        row = models.Schedule(
            name=name,
            description=description,
            at=at,
            next_run=next_run(at, repeat, unit),
            repeat=repeat,
            repeat_unit=unit.value if unit else None,
            assign=assign,
        )
        async with self._db.session() as session:
            session.add(row)
            await session.flush()
            schedule_id = row.id

        logger.info("schedule_created", extra={"schedule.id": schedule_id})
        schedule = await self.get_schedule(schedule_id)
        assert schedule is not None
        return schedule

    async def get_schedule(self, schedule_id: int) -> Schedule | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(models.Schedule)
                .where(models.Schedule.id == schedule_id)
                .options(selectinload(models.Schedule.targets))
            )
            row = result.scalar_one_or_none()
            return row_to_schedule(row) if row else None

    async def list_schedules(self) -> list[Schedule]:
        async with self._db.session() as session:
            result = await session.execute(
                select(models.Schedule)
                .options(selectinload(models.Schedule.targets))
                .order_by(models.Schedule.id)
            )
            return [row_to_schedule(row) for row in result.scalars()]

    async def list_due(self, now: datetime) -> list[Schedule]:
        async with self._db.session() as session:
            result = await session.execute(
                select(models.Schedule)
                .where(
                    models.Schedule.next_run.is_not(None),
                    models.Schedule.next_run <= now,
                    models.Schedule.disabled_at.is_(None),
                )
                .options(selectinload(models.Schedule.targets))
                .order_by(models.Schedule.next_run, models.Schedule.id)
            )
            return [row_to_schedule(row) for row in result.scalars()]

    async def update_schedule(self, schedule_id: int, **fields: Any) -> Schedule:
        """Apply field updates to a schedule.

        Changing `at`, `repeat` or `repeat_unit` recomputes `next_run` from the
        resulting anchor and repeat configuration.

        Raises:
            ScheduleNotFoundError: If the schedule does not exist.
            ValueError: On unknown fields or invalid values.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "name" in fields and not fields["name"]:
            raise ValueError("Schedule name cannot be empty")

        async with self._db.session() as session:
            row = await session.get(models.Schedule, schedule_id)
            if row is None:
                raise ScheduleNotFoundError(schedule_id)

            repeat = fields.get("repeat", row.repeat)
            repeat_unit = fields.get("repeat_unit", row.repeat_unit)
            repeat, unit = validate_repeat(repeat, repeat_unit)

            for key, value in fields.items():
                if key == "repeat_unit":
                    value = unit.value if unit else None
                setattr(row, key, value)

            if _TIMING_FIELDS & set(fields):
                row.next_run = next_run(row.at, repeat, unit)

        logger.info(
            "schedule_updated",
            extra={"schedule.id": schedule_id, "schedule.fields": sorted(fields)},
        )
        schedule = await self.get_schedule(schedule_id)
        assert schedule is not None
        return schedule

    async def set_next_run(self, schedule_id: int, next_run: datetime | None) -> None:
        async with self._db.session() as session:
            result = await session.execute(
                update(models.Schedule)
                .where(models.Schedule.id == schedule_id)
                .values(next_run=next_run)
            )
            if result.rowcount == 0:
                raise ScheduleNotFoundError(schedule_id)

    async def delete_schedule(self, schedule_id: int) -> bool:
        async with self._db.session() as session:
            row = await session.get(models.Schedule, schedule_id)
            if row is None:
                return False
            await session.delete(row)
        logger.info("schedule_deleted", extra={"schedule.id": schedule_id})
        return True

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    async def add_target(
        self, schedule_id: int, zone_id: str, account_id: str
    ) -> Target:
        async with self._db.session() as session:
            if await session.get(models.Schedule, schedule_id) is None:
                raise ScheduleNotFoundError(schedule_id)
            row = models.Target(
                schedule_id=schedule_id, zone_id=zone_id, account_id=account_id
            )
            session.add(row)
            await session.flush()
            return row_to_target(row)

    async def list_targets(
        self, schedule_id: int, *, enabled_only: bool = False
    ) -> list[Target]:
        stmt = select(models.Target).where(models.Target.schedule_id == schedule_id)
        if enabled_only:
            stmt = stmt.where(models.Target.disabled_at.is_(None))
        async with self._db.session() as session:
            result = await session.execute(stmt.order_by(models.Target.id))
            return [row_to_target(row) for row in result.scalars()]

    async def set_target_disabled(
        self, schedule_id: int, zone_ids: list[str], disabled: bool
    ) -> int:
        disabled_at = datetime.now(UTC) if disabled else None
        async with self._db.session() as session:
            result = await session.execute(
                update(models.Target)
                .where(
                    models.Target.schedule_id == schedule_id,
                    models.Target.zone_id.in_(zone_ids),
                )
                .values(disabled_at=disabled_at)
            )
            return result.rowcount

    async def remove_targets(self, schedule_id: int, zone_ids: list[str]) -> int:
        async with self._db.session() as session:
            result = await session.execute(
                delete(models.Target).where(
                    models.Target.schedule_id == schedule_id,
                    models.Target.zone_id.in_(zone_ids),
                )
            )
            return result.rowcount

    # ------------------------------------------------------------------
    # Runs and actions
    # ------------------------------------------------------------------

    async def create_run(self) -> Run:
        async with self._db.session() as session:
            row = models.Run(created_at=utc_now())
            session.add(row)
            await session.flush()
            return Run(id=row.id, created_at=row.created_at)

    async def record_action(
        self,
        *,
        run_id: int,
        schedule_id: int,
        zone_id: str,
        account_id: str,
        action: str,
        data: dict[str, Any],
        status: ActionStatus,
        error: str | None = None,
    ) -> ActionRecord:
        async with self._db.session() as session:
            row = models.Action(
                run_id=run_id,
                schedule_id=schedule_id,
                zone_id=zone_id,
                account_id=account_id,
                action=action,
                data=data,
                status=ActionStatus(status).value,
                error=error,
                created_at=utc_now(),
            )
            session.add(row)
            await session.flush()
            return row_to_action(row)

    async def list_runs(self, limit: int = 100) -> list[Run]:
        async with self._db.session() as session:
            result = await session.execute(
                select(models.Run)
                .options(selectinload(models.Run.actions))
                .order_by(models.Run.id.desc())
                .limit(limit)
            )
            return [row_to_run(row) for row in result.scalars()]

    async def list_actions(self, schedule_id: int) -> list[ActionRecord]:
        async with self._db.session() as session:
            result = await session.execute(
                select(models.Action)
                .where(models.Action.schedule_id == schedule_id)
                .order_by(models.Action.id)
            )
            return [row_to_action(row) for row in result.scalars()]

    async def count_runs(self) -> int:
        async with self._db.session() as session:
            result = await session.execute(select(func.count(models.Run.id)))
            return result.scalar_one()

    # ------------------------------------------------------------------
    # Auth token
    # ------------------------------------------------------------------

    async def load_token(self) -> AuthToken | None:
        async with self._db.session() as session:
            row = await session.get(models.AuthToken, TOKEN_KEY)
            return row_to_token(row) if row else None

    async def save_token(self, token: AuthToken) -> None:
        async with self._db.session() as session:
            row = await session.get(models.AuthToken, TOKEN_KEY)
            if row is None:
                row = models.AuthToken(key=TOKEN_KEY)
                session.add(row)
            row.token = token.token
            row.expires_at = token.expires_at
            row.refresh_token = token.refresh_token

    async def delete_token(self) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                delete(models.AuthToken).where(models.AuthToken.key == TOKEN_KEY)
            )
            return result.rowcount > 0
