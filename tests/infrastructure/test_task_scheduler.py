import asyncio

import pytest

from core.infrastructure.tasks.scheduler import BackgroundTaskScheduler


@pytest.mark.asyncio
async def test_runs_task_after_delay():
    scheduler = BackgroundTaskScheduler()
    ran = asyncio.Event()

    async def job():
        ran.set()

    scheduler.schedule(job, name="job", delay=0.05)
    assert scheduler.pending == 1
    assert not ran.is_set()

    await asyncio.wait_for(ran.wait(), timeout=1)
    await scheduler.drain()
    assert scheduler.pending == 0


@pytest.mark.asyncio
async def test_failure_is_contained(caplog):
    scheduler = BackgroundTaskScheduler()
    done = []

    async def broken():
        raise RuntimeError("boom")

    async def fine():
        done.append(True)

    scheduler.schedule(broken, name="broken")
    scheduler.schedule(fine, name="fine")
    await scheduler.drain()

    assert done == [True]
    assert "Background task broken failed" in caplog.text


@pytest.mark.asyncio
async def test_drain_cancels_stragglers():
    scheduler = BackgroundTaskScheduler()
    started = asyncio.Event()

    async def slow():
        started.set()
        await asyncio.sleep(60)

    scheduler.schedule(slow, name="slow")
    await started.wait()
    await scheduler.drain(timeout=0.05)
    await asyncio.sleep(0.01)

    assert scheduler.pending == 0


@pytest.mark.asyncio
async def test_drain_without_tasks():
    await BackgroundTaskScheduler().drain()
