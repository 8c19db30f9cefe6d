"""Tests for applying a schedule to its targets."""

import pytest
from conftest import FakeMusicApi

from cue.scheduling.executor import ActionExecutor
from cue.store.types import ASSIGN_ACTION, ActionStatus


@pytest.fixture
async def schedule_with_targets(store):
    schedule = await store.create_schedule("Lunch", assign="playlist-lunch")
    for zone in ("z1", "z2", "z3"):
        await store.add_target(schedule.id, zone, "acc-1")
    return schedule


class TestActionExecutor:
    """Tests for ActionExecutor.execute."""

    @pytest.mark.asyncio
    async def test_assigns_every_enabled_target(
        self, store, fake_api, schedule_with_targets
    ):
        run = await store.create_run()
        executor = ActionExecutor(fake_api, store, store)

        records = await executor.execute(run.id, schedule_with_targets)

        assert fake_api.assigned == [
            ("z1", "playlist-lunch"),
            ("z2", "playlist-lunch"),
            ("z3", "playlist-lunch"),
        ]
        assert [r.status for r in records] == [ActionStatus.SUCCESS] * 3
        assert all(r.action == ASSIGN_ACTION for r in records)
        assert all(r.data == {"playFromId": "playlist-lunch"} for r in records)

    @pytest.mark.asyncio
    async def test_failing_target_does_not_stop_the_rest(
        self, store, schedule_with_targets
    ):
        api = FakeMusicApi(failing={"z2"})
        run = await store.create_run()
        executor = ActionExecutor(api, store, store)

        records = await executor.execute(run.id, schedule_with_targets)

        assert [(r.zone_id, r.status) for r in records] == [
            ("z1", ActionStatus.SUCCESS),
            ("z2", ActionStatus.ERROR),
            ("z3", ActionStatus.SUCCESS),
        ]
        assert "rejected assignment" in records[1].error
        assert records[0].error is None
        assert [z for z, _ in api.assigned] == ["z1", "z3"]

        persisted = await store.list_actions(schedule_with_targets.id)
        assert len(persisted) == 3
        assert {a.run_id for a in persisted} == {run.id}

    @pytest.mark.asyncio
    async def test_disabled_targets_are_skipped(
        self, store, fake_api, schedule_with_targets
    ):
        await store.set_target_disabled(schedule_with_targets.id, ["z2"], True)
        run = await store.create_run()

        records = await ActionExecutor(fake_api, store, store).execute(
            run.id, schedule_with_targets
        )

        assert [r.zone_id for r in records] == ["z1", "z3"]

    @pytest.mark.asyncio
    async def test_nothing_to_assign(self, store, fake_api):
        schedule = await store.create_schedule("Empty")
        await store.add_target(schedule.id, "z1", "acc-1")
        run = await store.create_run()

        records = await ActionExecutor(fake_api, store, store).execute(
            run.id, schedule
        )

        assert records == []
        assert fake_api.assigned == []

    @pytest.mark.asyncio
    async def test_record_write_failure_does_not_stop_the_rest(
        self, store, fake_api, schedule_with_targets
    ):
        run = await store.create_run()
        original = store.record_action

        async def flaky_record_action(**fields):
            if fields["zone_id"] == "z2":
                raise RuntimeError("database is locked")
            return await original(**fields)

        store.record_action = flaky_record_action
        executor = ActionExecutor(fake_api, store, store)

        records = await executor.execute(run.id, schedule_with_targets)

        assert [z for z, _ in fake_api.assigned] == ["z1", "z2", "z3"]
        assert [r.zone_id for r in records] == ["z1", "z3"]
        persisted = await store.list_actions(schedule_with_targets.id)
        assert sorted(a.zone_id for a in persisted) == ["z1", "z3"]
