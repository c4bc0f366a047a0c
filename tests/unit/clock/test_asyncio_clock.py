"""Unit tests for AsyncioClock.

Runs against real time with a short interval; assertions leave slack
for scheduler jitter.
"""

from __future__ import annotations

import asyncio

import pytest

from workout_engine.clock import AsyncioClock

INTERVAL = 0.02


class TickCounter:
    def __init__(self) -> None:
        self.count = 0

    async def __call__(self) -> None:
        self.count += 1


@pytest.fixture
def counter() -> TickCounter:
    return TickCounter()


@pytest.fixture
async def clock(counter):
    clock = AsyncioClock(counter, interval_seconds=INTERVAL, name="test-clock")
    yield clock
    await clock.stop()


class TestAsyncioClockLifecycle:
    async def test_ticks_while_running(self, clock, counter):
        await clock.start()
        await asyncio.sleep(INTERVAL * 5.5)

        assert clock.is_running
        assert 3 <= counter.count <= 6
        assert clock.tick_count == counter.count

    async def test_no_ticks_before_start(self, clock, counter):
        await asyncio.sleep(INTERVAL * 3)

        assert counter.count == 0
        assert not clock.is_running

    async def test_no_ticks_while_paused(self, clock, counter):
        await clock.start()
        await asyncio.sleep(INTERVAL * 2.5)
        await clock.pause()
        frozen = counter.count

        await asyncio.sleep(INTERVAL * 5)

        assert clock.is_paused
        assert counter.count == frozen

    async def test_resume_does_not_catch_up(self, clock, counter):
        await clock.start()
        await clock.pause()
        await asyncio.sleep(INTERVAL * 10)

        await clock.resume()
        await asyncio.sleep(INTERVAL * 0.5)

        assert counter.count == 0

        await asyncio.sleep(INTERVAL * 2)
        assert 1 <= counter.count <= 3

    async def test_stop_is_idempotent_and_final(self, clock, counter):
        await clock.start()
        await asyncio.sleep(INTERVAL * 2.5)
        await clock.stop()
        await clock.stop()
        stopped_at = counter.count

        await clock.resume()
        await asyncio.sleep(INTERVAL * 3)

        assert not clock.is_running
        assert counter.count == stopped_at

    async def test_double_start(self, clock, counter):
        await clock.start()
        await clock.start()  # Should not raise
        await asyncio.sleep(INTERVAL * 3.5)

        assert counter.count <= 4

    async def test_stop_without_start(self, clock):
        await clock.stop()  # Should not raise

        assert not clock.is_running


class TestAsyncioClockCallbacks:
    async def test_failing_callback_keeps_ticking(self):
        calls = []

        async def flaky() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        clock = AsyncioClock(flaky, interval_seconds=INTERVAL)
        await clock.start()
        await asyncio.sleep(INTERVAL * 4.5)
        await clock.stop()

        assert len(calls) >= 2

    async def test_stop_from_inside_callback(self):
        holder: dict[str, AsyncioClock] = {}
        calls = []

        async def stop_on_first_tick() -> None:
            calls.append(1)
            await holder["clock"].stop()

        clock = AsyncioClock(stop_on_first_tick, interval_seconds=INTERVAL)
        holder["clock"] = clock
        await clock.start()
        await asyncio.sleep(INTERVAL * 4)

        assert calls == [1]
        assert not clock.is_running
