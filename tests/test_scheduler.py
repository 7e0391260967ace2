"""Tests for the paced tick driver."""

import asyncio

import pytest

from robologic.scheduler import ExecutionScheduler, TickCadence


def test_cadence_uses_initial_delay_then_interval():
    cadence = TickCadence()
    assert cadence.delay_for(1) == pytest.approx(0.1)
    assert cadence.delay_for(2) == pytest.approx(0.6)
    assert cadence.delay_for(9) == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_scheduler_runs_until_step_reports_done():
    calls: list[int] = []

    def step() -> bool:
        calls.append(len(calls))
        return len(calls) < 3

    scheduler = ExecutionScheduler(step, TickCadence(initial_delay=0, interval=0))
    scheduler.start()
    assert scheduler.pending is True

    completed = await scheduler.wait()

    assert completed is True
    assert calls == [0, 1, 2]
    assert scheduler.ticks_fired == 3
    assert scheduler.pending is False


@pytest.mark.asyncio
async def test_cancel_suppresses_pending_tick():
    calls: list[int] = []

    def step() -> bool:
        calls.append(1)
        return True

    scheduler = ExecutionScheduler(step, TickCadence(initial_delay=0.05, interval=0.05))
    scheduler.start()

    assert scheduler.cancel() is True
    assert await scheduler.wait() is False
    await asyncio.sleep(0.1)
    assert calls == []
    assert scheduler.cancel() is False


@pytest.mark.asyncio
async def test_restart_supersedes_previous_run():
    calls: list[str] = []

    def step() -> bool:
        calls.append("tick")
        return False

    scheduler = ExecutionScheduler(step, TickCadence(initial_delay=0.01, interval=0.01))
    scheduler.start()
    scheduler.start()

    assert await scheduler.wait() is True
    await asyncio.sleep(0.05)
    # Only one outstanding timer at a time: the first start never fires
    assert calls == ["tick"]


@pytest.mark.asyncio
async def test_step_errors_surface_through_wait():
    def step() -> bool:
        raise RuntimeError("engine bug")

    scheduler = ExecutionScheduler(step, TickCadence(initial_delay=0, interval=0))
    scheduler.start()

    with pytest.raises(RuntimeError, match="engine bug"):
        await scheduler.wait()


@pytest.mark.asyncio
async def test_wait_without_start_returns_false():
    scheduler = ExecutionScheduler(lambda: False)
    assert await scheduler.wait() is False
