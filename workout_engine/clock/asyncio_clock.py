"""AsyncioClock - background task delivering ticks at a fixed interval."""

from __future__ import annotations

import asyncio

import structlog

from workout_engine.clock.base import Clock, TickCallback

logger = structlog.get_logger()


class AsyncioClock(Clock):
    """Clock backed by a single asyncio task.

    Pausing cancels the task; resuming spawns a new one whose first tick
    is a full interval away, so time spent paused is never counted.
    Ticks are scheduled against deadlines rather than chained sleeps so
    slow callbacks do not make the clock drift.

    Usage:
        clock = AsyncioClock(on_tick=handler, interval_seconds=1.0)
        await clock.start()
        ...
        await clock.stop()
    """

    def __init__(
        self,
        on_tick: TickCallback,
        *,
        interval_seconds: float = 1.0,
        name: str = "session-clock",
    ) -> None:
        self._on_tick = on_tick
        self._interval = interval_seconds
        self._name = name
        self._log = logger.bind(service="clock", clock=name)

        self._task: asyncio.Task | None = None
        self._started = False
        self._paused = False
        self._stopped = False
        self._ticks = 0

    @property
    def is_running(self) -> bool:
        return self._started and not self._paused and not self._stopped

    @property
    def is_paused(self) -> bool:
        return self._paused and not self._stopped

    @property
    def tick_count(self) -> int:
        """Ticks delivered so far."""
        return self._ticks

    async def start(self) -> None:
        if self._started:
            self._log.warning("clock.already_started")
            return

        self._started = True
        self._spawn()
        self._log.debug("clock.started", interval_seconds=self._interval)

    async def pause(self) -> None:
        if not self.is_running:
            return

        self._paused = True
        await self._cancel_task()
        self._log.debug("clock.paused", ticks=self._ticks)

    async def resume(self) -> None:
        if not self._started or self._stopped or not self._paused:
            return

        self._paused = False
        self._spawn()
        self._log.debug("clock.resumed", ticks=self._ticks)

    async def stop(self) -> None:
        if self._stopped:
            return

        self._stopped = True
        await self._cancel_task()
        self._log.debug("clock.stopped", ticks=self._ticks)

    def _spawn(self) -> None:
        self._task = asyncio.create_task(self._run(), name=self._name)

    async def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return

        # Called from inside a tick callback: the loop sees it was
        # replaced and exits once the callback returns.
        if task is asyncio.current_task():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        me = asyncio.current_task()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._interval

        while self._task is me:
            delay = deadline - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            if self._task is not me:
                break

            deadline += self._interval
            self._ticks += 1
            try:
                await self._on_tick()
            except Exception as exc:
                self._log.exception("clock.tick_error", error=str(exc))
