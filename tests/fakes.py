"""Test doubles shared across unit tests."""

from __future__ import annotations

from workout_engine.clock.base import Clock, TickCallback
from workout_engine.collaborators.base import FeedbackKind, FeedbackSink
from workout_engine.collaborators.memory import InMemorySessionRepository
from workout_engine.errors import PersistenceError
from workout_engine.models.session import SessionState


class ManualClock(Clock):
    """Clock that only ticks when the test says so."""

    def __init__(self, on_tick: TickCallback) -> None:
        self._on_tick = on_tick
        self.started = False
        self.paused = False
        self.stopped = False
        self.calls: list[str] = []

    @property
    def is_running(self) -> bool:
        return self.started and not self.paused and not self.stopped

    @property
    def is_paused(self) -> bool:
        return self.paused and not self.stopped

    async def start(self) -> None:
        self.calls.append("start")
        self.started = True

    async def pause(self) -> None:
        self.calls.append("pause")
        if self.is_running:
            self.paused = True

    async def resume(self) -> None:
        self.calls.append("resume")
        if self.started and not self.stopped:
            self.paused = False

    async def stop(self) -> None:
        self.calls.append("stop")
        self.stopped = True

    async def tick(self, count: int = 1) -> int:
        """Deliver up to ``count`` ticks; returns how many were delivered."""
        delivered = 0
        for _ in range(count):
            if not self.is_running:
                break
            await self._on_tick()
            delivered += 1
        return delivered


class ManualClockFactory:
    """Clock factory remembering every clock it built."""

    def __init__(self) -> None:
        self.clocks: list[ManualClock] = []

    def __call__(self, on_tick: TickCallback) -> ManualClock:
        clock = ManualClock(on_tick)
        self.clocks.append(clock)
        return clock

    @property
    def last(self) -> ManualClock:
        return self.clocks[-1]


class RecordingFeedbackSink(FeedbackSink):
    def __init__(self) -> None:
        self.events: list[tuple[FeedbackKind, SessionState]] = []

    def notify(self, kind: FeedbackKind, state: SessionState) -> None:
        self.events.append((kind, state))

    @property
    def kinds(self) -> list[FeedbackKind]:
        return [kind for kind, _ in self.events]


class ExplodingFeedbackSink(FeedbackSink):
    def notify(self, kind: FeedbackKind, state: SessionState) -> None:
        raise RuntimeError("speaker unplugged")


class FlakyRepository(InMemorySessionRepository):
    """In-memory repository whose writes can be made to fail.

    ``fail_deletes`` counts down: that many slot releases fail.
    """

    def __init__(self) -> None:
        super().__init__()
        self.fail_saves = False
        self.fail_deletes = 0
        self.save_calls = 0

    async def save_snapshot(self, state: SessionState) -> None:
        self.save_calls += 1
        if self.fail_saves:
            raise PersistenceError("disk full", session_id=state.session_id)
        await super().save_snapshot(state)

    async def delete_active_record(self, user_id: str) -> None:
        if self.fail_deletes > 0:
            self.fail_deletes -= 1
            raise PersistenceError("database is locked", user_id=user_id)
        await super().delete_active_record(user_id)
