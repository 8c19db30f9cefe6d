"""Row mappers for converting ORM rows to value types."""

from __future__ import annotations

from cue.db import models
from cue.store.types import (
    ActionRecord,
    ActionStatus,
    AuthToken,
    RepeatUnit,
    Run,
    Schedule,
    Target,
)


def row_to_target(row: models.Target) -> Target:
    return Target(
        id=row.id,
        schedule_id=row.schedule_id,
        zone_id=row.zone_id,
        account_id=row.account_id,
        disabled_at=row.disabled_at,
    )


def row_to_schedule(row: models.Schedule) -> Schedule:
    """Convert a schedule row. The `targets` relationship must be loaded."""
    return Schedule(
        id=row.id,
        name=row.name,
        description=row.description,
        at=row.at,
        next_run=row.next_run,
        repeat=row.repeat,
        repeat_unit=RepeatUnit(row.repeat_unit) if row.repeat_unit else None,
        assign=row.assign,
        disabled_at=row.disabled_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        targets=tuple(row_to_target(t) for t in row.targets),
    )


def row_to_action(row: models.Action) -> ActionRecord:
    return ActionRecord(
        id=row.id,
        run_id=row.run_id,
        schedule_id=row.schedule_id,
        zone_id=row.zone_id,
        account_id=row.account_id,
        action=row.action,
        data=dict(row.data),
        status=ActionStatus(row.status),
        error=row.error,
        created_at=row.created_at,
    )


def row_to_run(row: models.Run, *, with_actions: bool = True) -> Run:
    actions = tuple(row_to_action(a) for a in row.actions) if with_actions else ()
    return Run(id=row.id, created_at=row.created_at, actions=actions)


def row_to_token(row: models.AuthToken) -> AuthToken:
    return AuthToken(
        token=row.token,
        expires_at=row.expires_at,
        refresh_token=row.refresh_token,
    )
