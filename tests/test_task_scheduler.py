"""
Test the task scheduler and the default job wiring.
"""

from datetime import datetime, timedelta

import pytest

from snakepill.core.exceptions import SchedulerError
from snakepill.scheduler import TaskScheduler, register_default_tasks
from snakepill.scheduler.jobs import ELIGIBILITY_CHECK_TASK, ONLINE_CLEANUP_TASK
from tests.conftest import add_player


def make_due(task):
    task.next_run = datetime.utcnow() - timedelta(seconds=1)


@pytest.mark.asyncio
async def test_due_tasks_run_and_reschedule():
    calls = []

    async def job():
        calls.append("ran")
        return len(calls)

    scheduler = TaskScheduler()
    task = scheduler.register_task("job", job, interval_seconds=60)

    await scheduler.run_pending_tasks()
    assert calls == []

    make_due(task)
    await scheduler.run_pending_tasks()

    assert calls == ["ran"]
    assert task.run_count == 1
    assert task.last_result == 1
    assert task.next_run > datetime.utcnow()


@pytest.mark.asyncio
async def test_failing_task_is_counted_and_retried():
    async def broken():
        raise RuntimeError("boom")

    scheduler = TaskScheduler()
    task = scheduler.register_task("broken", broken, interval_seconds=30, initial_delay=0)

    await scheduler.run_pending_tasks()

    assert task.error_count == 1
    assert task.last_error == "boom"
    assert task.next_run > datetime.utcnow()

    health = await scheduler.health_check()
    assert health["tasks_with_errors"] == 1
    assert health["tasks"]["broken"]["error_count"] == 1


@pytest.mark.asyncio
async def test_disabled_task_does_not_run():
    calls = []

    async def job():
        calls.append(1)

    scheduler = TaskScheduler()
    scheduler.register_task("job", job, interval_seconds=5, initial_delay=0)
    scheduler.disable_task("job")

    await scheduler.run_pending_tasks()
    assert calls == []


def test_duplicate_registration_rejected():
    async def job():
        pass

    scheduler = TaskScheduler()
    scheduler.register_task("job", job, interval_seconds=5)

    with pytest.raises(SchedulerError):
        scheduler.register_task("job", job, interval_seconds=5)


@pytest.mark.asyncio
async def test_default_tasks_reconcile_and_clean_up(services, chain_reader):
    wallet = await add_player(services.store, playtime_seconds=600)
    chain_reader.holdings[wallet] = 6.0

    scheduler = register_default_tasks(TaskScheduler(), services)
    assert set(scheduler.tasks) == {ELIGIBILITY_CHECK_TASK, ONLINE_CLEANUP_TASK}
    assert scheduler.tasks[ONLINE_CLEANUP_TASK].interval_seconds == services.settings.online_cleanup_interval

    for task in scheduler.tasks.values():
        make_due(task)
    await scheduler.run_pending_tasks()

    eligibility = scheduler.tasks[ELIGIBILITY_CHECK_TASK]
    assert eligibility.run_count == 1
    assert eligibility.last_result["eligible"] == 1
    assert scheduler.tasks[ONLINE_CLEANUP_TASK].last_result == 0
    assert (await services.store.get_player(wallet)).is_eligible is True


@pytest.mark.asyncio
async def test_background_start_and_stop():
    scheduler = TaskScheduler(loop_interval=0.01)

    scheduler.start_background()
    await scheduler.stop()

    assert scheduler.running is False
