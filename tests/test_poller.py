"""Tests for the schedule poller."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
from conftest import FakeMusicApi

from cue.config import ConfigError
from cue.scheduling.executor import ActionExecutor
from cue.scheduling.poller import SchedulePoller, validate_interval
from cue.store.types import ActionStatus


def make_poller(store, api, clock, interval=60) -> SchedulePoller:
    executor = ActionExecutor(api, store, store)
    return SchedulePoller(executor, store, store, interval=interval, clock=clock)


async def make_due_schedule(store, now, *, repeat=1, repeat_unit="day", **kwargs):
    """A schedule anchored a day ago whose next_run has already passed."""
    at = now - timedelta(days=1, minutes=1)
    schedule = await store.create_schedule(
        kwargs.pop("name", "Morning"),
        at=at,
        repeat=repeat,
        repeat_unit=repeat_unit,
        assign=kwargs.pop("assign", "playlist-morning"),
        **kwargs,
    )
    await store.set_next_run(schedule.id, at)
    return await store.get_schedule(schedule.id)


class TestTick:
    """Tests for SchedulePoller.tick."""

    @pytest.mark.asyncio
    async def test_end_to_end_daily_schedule(self, store, fake_api, clock, now):
        schedule = await make_due_schedule(store, now)
        await store.add_target(schedule.id, "z1", "acc-1")
        await store.add_target(schedule.id, "z2", "acc-1")
        await store.add_target(schedule.id, "z3", "acc-2")
        await store.set_target_disabled(schedule.id, ["z3"], True)

        result = await make_poller(store, fake_api, clock).tick()

        assert await store.count_runs() == 1
        runs = await store.list_runs()
        assert runs[0].id == result.run_id
        assert [a.zone_id for a in runs[0].actions] == ["z1", "z2"]
        assert all(a.status == ActionStatus.SUCCESS for a in runs[0].actions)

        updated = await store.get_schedule(schedule.id)
        assert updated.next_run == schedule.at + timedelta(days=2)
        assert now <= updated.next_run < now + timedelta(days=1)

    @pytest.mark.asyncio
    async def test_no_schedules_due_still_records_run(self, store, fake_api, clock):
        result = await make_poller(store, fake_api, clock).tick()

        assert result.due == 0
        assert result.actions == []
        assert await store.count_runs() == 1

    @pytest.mark.asyncio
    async def test_future_and_disabled_schedules_are_not_due(
        self, store, fake_api, clock, now
    ):
        await store.create_schedule(
            "Later", at=now + timedelta(hours=1), assign="p", repeat=1, repeat_unit="day"
        )
        disabled = await make_due_schedule(store, now, name="Off")
        await store.update_schedule(disabled.id, disabled_at=now)

        result = await make_poller(store, fake_api, clock).tick()

        assert result.due == 0
        assert fake_api.assigned == []

    @pytest.mark.asyncio
    async def test_one_shot_schedule_is_cleared(self, store, fake_api, clock, now):
        schedule = await make_due_schedule(store, now, repeat=None, repeat_unit=None)
        await store.add_target(schedule.id, "z1", "acc-1")

        await make_poller(store, fake_api, clock).tick()

        assert fake_api.assigned == [("z1", "playlist-morning")]
        assert (await store.get_schedule(schedule.id)).next_run is None

    @pytest.mark.asyncio
    async def test_failed_assignment_still_reschedules(self, store, clock, now):
        api = FakeMusicApi(failing={"z1"})
        schedule = await make_due_schedule(store, now)
        await store.add_target(schedule.id, "z1", "acc-1")

        result = await make_poller(store, api, clock).tick()

        assert [a.status for a in result.actions] == [ActionStatus.ERROR]
        assert (await store.get_schedule(schedule.id)).next_run > now

    @pytest.mark.asyncio
    async def test_reschedule_failure_is_contained(self, store, fake_api, clock, now):
        broken = await make_due_schedule(store, now, name="Broken")
        healthy = await make_due_schedule(store, now, name="Healthy")
        await store.add_target(broken.id, "z1", "acc-1")
        await store.add_target(healthy.id, "z2", "acc-1")

        original = store.set_next_run

        async def flaky_set_next_run(schedule_id, value):
            if schedule_id == broken.id:
                raise RuntimeError("database is locked")
            await original(schedule_id, value)

        store.set_next_run = flaky_set_next_run

        result = await make_poller(store, fake_api, clock).tick()

        assert result.failed_schedule_ids == [broken.id]
        assert sorted(z for z, _ in fake_api.assigned) == ["z1", "z2"]
        assert (await store.get_schedule(healthy.id)).next_run > now

    @pytest.mark.asyncio
    async def test_invalid_repeat_clears_next_run(self, store, fake_api, clock, now):
        schedule = await make_due_schedule(store, now)
        broken = replace(schedule, repeat=0)

        poller = make_poller(store, fake_api, clock)
        await poller._reschedule(broken)

        assert (await store.get_schedule(schedule.id)).next_run is None

    @pytest.mark.asyncio
    async def test_oversized_repeat_clears_next_run(self, store, fake_api, clock, now):
        schedule = await make_due_schedule(store, now)
        broken = replace(schedule, repeat=4_000_000)

        poller = make_poller(store, fake_api, clock)
        await poller._reschedule(broken)

        assert (await store.get_schedule(schedule.id)).next_run is None

    @pytest.mark.asyncio
    async def test_next_run_out_of_range_does_not_refire(self, store, fake_api):
        at = datetime(9999, 12, 31, 23, 0, tzinfo=UTC)
        late = at + timedelta(minutes=30)
        schedule = await store.create_schedule(
            "End of time", at=at, repeat=1, repeat_unit="hour", assign="p1"
        )
        await store.add_target(schedule.id, "z1", "acc-1")
        poller = make_poller(store, fake_api, lambda: late)

        first = await poller.tick()
        second = await poller.tick()

        assert first.due == 1
        assert first.failed_schedule_ids == []
        assert fake_api.assigned == [("z1", "p1")]
        assert second.due == 0
        assert second.actions == []
        assert (await store.get_schedule(schedule.id)).next_run is None

    @pytest.mark.asyncio
    async def test_schedule_execution_error_does_not_stop_others(
        self, store, clock, now
    ):
        class ExplodingExecutor:
            def __init__(self):
                self.seen = []

            async def execute(self, run_id, schedule):
                self.seen.append(schedule.id)
                if len(self.seen) == 1:
                    raise RuntimeError("boom")
                return []

        first = await make_due_schedule(store, now, name="First")
        second = await make_due_schedule(store, now, name="Second")
        executor = ExplodingExecutor()
        poller = SchedulePoller(executor, store, store, clock=clock)

        result = await poller.tick()

        assert executor.seen == [first.id, second.id]
        assert result.failed_schedule_ids == [first.id]
        assert (await store.get_schedule(first.id)).next_run > now


class TestLifecycle:
    """Tests for start and stop."""

    @pytest.mark.parametrize("interval", [0, -5, 1.5, "60", True])
    def test_invalid_interval_raises(self, interval):
        with pytest.raises(ConfigError):
            validate_interval(interval)

    @pytest.mark.asyncio
    async def test_start_rejects_invalid_interval(self, store, fake_api, clock):
        poller = make_poller(store, fake_api, clock, interval=0)
        with pytest.raises(ConfigError):
            await poller.start()
        assert not poller.running

    @pytest.mark.asyncio
    async def test_start_ticks_immediately_and_stop_waits(
        self, store, fake_api, clock
    ):
        poller = make_poller(store, fake_api, clock, interval=3600)
        await poller.start()
        assert poller.running

        for _ in range(100):
            if await store.count_runs():
                break
            await asyncio.sleep(0.01)
        await asyncio.wait_for(poller.stop(), timeout=2)

        assert not poller.running
        assert await store.count_runs() == 1

    @pytest.mark.asyncio
    async def test_tick_errors_do_not_kill_the_loop(self, store, clock):
        ticks = 0

        class FailingPoller(SchedulePoller):
            async def tick(self):
                nonlocal ticks
                ticks += 1
                raise RuntimeError("store unavailable")

        poller = FailingPoller(
            ActionExecutor(FakeMusicApi(), store, store), store, store, interval=1
        )
        await poller.start()
        # Shorten the wait before the loop arms its first timer.
        poller._interval = 0.01
        for _ in range(100):
            if ticks >= 3:
                break
            await asyncio.sleep(0.01)
        await poller.stop()

        assert ticks >= 3
