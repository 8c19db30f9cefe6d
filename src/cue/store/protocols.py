"""Protocol definitions for the store subsystem.

The scheduling engine, token manager and cache depend on these interfaces
only, so tests can substitute in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from cue.store.types import (
        ActionRecord,
        ActionStatus,
        AuthToken,
        RepeatUnit,
        Run,
        Schedule,
        Target,
    )


@runtime_checkable
class ScheduleStore(Protocol):
    """Protocol for schedule and target storage."""

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
        """Create a schedule, deriving its first next_run."""
        ...

    async def get_schedule(self, schedule_id: int) -> Schedule | None:
        """Get a schedule with its targets."""
        ...

    async def list_schedules(self) -> list[Schedule]:
        """List all schedules with their targets."""
        ...

    async def list_due(self, now: datetime) -> list[Schedule]:
        """Schedules with next_run <= now that are not disabled."""
        ...

    async def update_schedule(self, schedule_id: int, **fields: Any) -> Schedule:
        """Apply field updates to a schedule."""
        ...

    async def set_next_run(self, schedule_id: int, next_run: datetime | None) -> None:
        """Persist a recomputed next_run."""
        ...

    async def delete_schedule(self, schedule_id: int) -> bool:
        """Delete a schedule and its targets."""
        ...

    async def add_target(
        self, schedule_id: int, zone_id: str, account_id: str
    ) -> Target:
        """Attach a zone to a schedule."""
        ...

    async def list_targets(
        self, schedule_id: int, *, enabled_only: bool = False
    ) -> list[Target]:
        """List a schedule's targets."""
        ...

    async def set_target_disabled(
        self, schedule_id: int, zone_ids: list[str], disabled: bool
    ) -> int:
        """Enable or disable targets by zone id. Returns rows changed."""
        ...

    async def remove_targets(self, schedule_id: int, zone_ids: list[str]) -> int:
        """Detach zones from a schedule. Returns rows removed."""
        ...


@runtime_checkable
class RunStore(Protocol):
    """Protocol for the append-only run audit trail."""

    async def create_run(self) -> Run:
        """Create a new run."""
        ...

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
        """Write one action outcome."""
        ...

    async def list_runs(self, limit: int = 100) -> list[Run]:
        """Most recent runs first, with their actions."""
        ...

    async def list_actions(self, schedule_id: int) -> list[ActionRecord]:
        """Actions recorded for a schedule, oldest first."""
        ...


@runtime_checkable
class TokenStore(Protocol):
    """Protocol for the persisted user-mode credential."""

    async def load_token(self) -> AuthToken | None:
        ...

    async def save_token(self, token: AuthToken) -> None:
        ...

    async def delete_token(self) -> bool:
        ...
