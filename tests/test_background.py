import asyncio

import pytest

from appraiser.utils.background import BackgroundWriter, run_with_deadline


async def _value(result, delay=0.0):
    if delay:
        await asyncio.sleep(delay)
    return result


async def _fail():
    raise RuntimeError("disk full")


@pytest.mark.asyncio
async def test_run_with_deadline():
    assert await run_with_deadline(_value(7), 1.0, "fast") == 7
    assert await run_with_deadline(_value(7, delay=1.0), 0.05, "slow") is None
    assert await run_with_deadline(_fail(), 1.0, "broken") is None


@pytest.mark.asyncio
async def test_flush_runs_each_job_once():
    writer = BackgroundWriter("test")
    runs = []

    async def job():
        runs.append(1)

    writer.submit("one", job)
    writer.submit("two", job)
    assert writer.pending_count == 2

    assert await writer.flush(1.0) == 2
    assert await writer.flush(1.0) == 0
    assert len(runs) == 2
    assert writer.pending_count == 0


@pytest.mark.asyncio
async def test_flush_isolates_failures_and_drops_slow_jobs():
    writer = BackgroundWriter("test")
    finished = []

    async def ok():
        finished.append("ok")

    async def slow():
        await asyncio.sleep(1.0)
        finished.append("slow")

    writer.submit("ok", ok)
    writer.submit("broken", _fail)
    writer.submit("slow", slow)

    assert await writer.flush(0.1) == 1
    assert finished == ["ok"]
    # Dropped jobs are not retried
    assert writer.pending_count == 0


@pytest.mark.asyncio
async def test_schedule_and_drain():
    writer = BackgroundWriter("test")
    done = []

    async def job():
        done.append(True)

    assert writer.schedule(1.0) is None

    writer.submit("job", job)
    task = writer.schedule(1.0)
    assert task is not None
    assert done == []

    await writer.drain()

    assert done == [True]
    assert task.result() == 1
