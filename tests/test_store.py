"""Tests for the SQL store."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from cue.scheduling.recurrence import RecurrenceError
from cue.store import (
    ActionStatus,
    AuthToken,
    RepeatUnit,
    RunStore,
    ScheduleNotFoundError,
    ScheduleStore,
    SqlStore,
    TokenStore,
)


def test_sql_store_implements_protocols(store):
    assert isinstance(store, ScheduleStore)
    assert isinstance(store, RunStore)
    assert isinstance(store, TokenStore)


class TestSchedules:
    """Tests for schedule persistence."""

    @pytest.mark.asyncio
    async def test_create_computes_first_next_run(self, store):
        at = datetime.now(UTC) + timedelta(hours=2)
        schedule = await store.create_schedule(
            "Evening", at=at, repeat=1, repeat_unit="day", assign="playlist-1"
        )

        assert schedule.id is not None
        assert schedule.next_run == at
        assert schedule.repeat_unit is RepeatUnit.DAY
        assert schedule.is_recurring
        assert schedule.enabled
        assert schedule.created_at is not None

    @pytest.mark.asyncio
    async def test_create_rejects_half_repeat(self, store):
        with pytest.raises(RecurrenceError):
            await store.create_schedule("Bad", repeat=1)
        assert await store.list_schedules() == []

    @pytest.mark.asyncio
    async def test_create_rejects_oversized_repeat(self, store, now):
        with pytest.raises(RecurrenceError, match="longer than"):
            await store.create_schedule(
                "Forever", at=now, repeat=4_000_000, repeat_unit="day"
            )
        assert await store.list_schedules() == []

    @pytest.mark.asyncio
    async def test_create_rejects_empty_name(self, store):
        with pytest.raises(ValueError):
            await store.create_schedule("")

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get_schedule(999) is None

    @pytest.mark.asyncio
    async def test_list_due_orders_by_next_run(self, store):
        now = datetime.now(UTC)
        late = await store.create_schedule("late")
        early = await store.create_schedule("early")
        future = await store.create_schedule("future")
        await store.set_next_run(late.id, now - timedelta(minutes=1))
        await store.set_next_run(early.id, now - timedelta(hours=1))
        await store.set_next_run(future.id, now + timedelta(minutes=1))

        due = await store.list_due(now)

        assert [s.name for s in due] == ["early", "late"]

    @pytest.mark.asyncio
    async def test_update_recomputes_next_run_on_timing_change(self, store):
        schedule = await store.create_schedule("s", assign="p1")
        assert schedule.next_run is None

        at = datetime.now(UTC) + timedelta(days=1)
        updated = await store.update_schedule(
            schedule.id, at=at, repeat=2, repeat_unit="hour"
        )

        assert updated.next_run == at
        assert updated.repeat == 2
        assert updated.repeat_unit is RepeatUnit.HOUR

    @pytest.mark.asyncio
    async def test_update_other_fields_keeps_next_run(self, store):
        now = datetime.now(UTC)
        schedule = await store.create_schedule("s")
        await store.set_next_run(schedule.id, now)

        updated = await store.update_schedule(schedule.id, assign="p2", name="renamed")

        assert updated.name == "renamed"
        assert updated.assign == "p2"
        assert updated.next_run == now

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_field(self, store):
        schedule = await store.create_schedule("s")
        with pytest.raises(ValueError, match="next_run"):
            await store.update_schedule(schedule.id, next_run=None)

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        with pytest.raises(ScheduleNotFoundError):
            await store.update_schedule(42, name="x")

    @pytest.mark.asyncio
    async def test_set_next_run_missing(self, store):
        with pytest.raises(ScheduleNotFoundError):
            await store.set_next_run(42, None)

    @pytest.mark.asyncio
    async def test_delete_cascades_targets(self, store):
        schedule = await store.create_schedule("s")
        await store.add_target(schedule.id, "z1", "acc-1")

        assert await store.delete_schedule(schedule.id) is True
        assert await store.list_targets(schedule.id) == []
        assert await store.delete_schedule(schedule.id) is False


class TestTargets:
    """Tests for target persistence."""

    @pytest.mark.asyncio
    async def test_add_and_list(self, store):
        schedule = await store.create_schedule("s")
        await store.add_target(schedule.id, "z1", "acc-1")
        await store.add_target(schedule.id, "z2", "acc-2")

        targets = await store.list_targets(schedule.id)
        assert [(t.zone_id, t.account_id) for t in targets] == [
            ("z1", "acc-1"),
            ("z2", "acc-2"),
        ]
        loaded = await store.get_schedule(schedule.id)
        assert len(loaded.targets) == 2

    @pytest.mark.asyncio
    async def test_duplicate_zone_rejected(self, store):
        schedule = await store.create_schedule("s")
        await store.add_target(schedule.id, "z1", "acc-1")
        with pytest.raises(IntegrityError):
            await store.add_target(schedule.id, "z1", "acc-1")

    @pytest.mark.asyncio
    async def test_add_to_missing_schedule(self, store):
        with pytest.raises(ScheduleNotFoundError):
            await store.add_target(42, "z1", "acc-1")

    @pytest.mark.asyncio
    async def test_disable_enable_and_remove(self, store):
        schedule = await store.create_schedule("s")
        for zone in ("z1", "z2", "z3"):
            await store.add_target(schedule.id, zone, "acc-1")

        assert await store.set_target_disabled(schedule.id, ["z1", "z2"], True) == 2
        enabled = await store.list_targets(schedule.id, enabled_only=True)
        assert [t.zone_id for t in enabled] == ["z3"]

        await store.set_target_disabled(schedule.id, ["z2"], False)
        enabled = await store.list_targets(schedule.id, enabled_only=True)
        assert [t.zone_id for t in enabled] == ["z2", "z3"]

        assert await store.remove_targets(schedule.id, ["z3", "missing"]) == 1
        assert [t.zone_id for t in await store.list_targets(schedule.id)] == [
            "z1",
            "z2",
        ]


class TestRuns:
    """Tests for run and action persistence."""

    @pytest.mark.asyncio
    async def test_runs_with_actions_newest_first(self, store):
        schedule = await store.create_schedule("s")
        first = await store.create_run()
        second = await store.create_run()
        await store.record_action(
            run_id=second.id,
            schedule_id=schedule.id,
            zone_id="z1",
            account_id="acc-1",
            action="assign",
            data={"playFromId": "p1"},
            status=ActionStatus.ERROR,
            error="zone offline",
        )

        runs = await store.list_runs(limit=10)

        assert [r.id for r in runs] == [second.id, first.id]
        assert runs[1].actions == ()
        action = runs[0].actions[0]
        assert action.status is ActionStatus.ERROR
        assert action.error == "zone offline"
        assert action.data == {"playFromId": "p1"}
        assert await store.count_runs() == 2

    @pytest.mark.asyncio
    async def test_list_runs_limit(self, store):
        for _ in range(3):
            await store.create_run()
        assert len(await store.list_runs(limit=2)) == 2


class TestToken:
    """Tests for the persisted credential."""

    @pytest.mark.asyncio
    async def test_save_load_replace_delete(self, store):
        expires = datetime(2030, 1, 1, tzinfo=UTC)
        assert await store.load_token() is None

        await store.save_token(AuthToken("t1", expires, "r1"))
        await store.save_token(AuthToken("t2", expires, "r2"))

        assert await store.load_token() == AuthToken("t2", expires, "r2")
        assert await store.delete_token() is True
        assert await store.load_token() is None
        assert await store.delete_token() is False


@pytest.mark.asyncio
async def test_timestamps_round_trip_as_utc(database):
    store = SqlStore(database)
    at = datetime(2024, 5, 10, 9, 30, tzinfo=UTC)
    schedule = await store.create_schedule("s", at=at)

    loaded = await store.get_schedule(schedule.id)
    assert loaded.at == at
    assert loaded.at.tzinfo is not None
