"""In-process collaborator implementations.

Useful for single-process deployments, demos and tests. State lives
only as long as the instance.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Iterable

import structlog

from workout_engine.collaborators.base import (
    ActiveSession,
    FeedbackKind,
    FeedbackSink,
    SessionRepository,
    WorkoutCatalog,
)
from workout_engine.errors import NotFoundError
from workout_engine.models.session import SessionState
from workout_engine.models.workout import WorkoutDefinition
from workout_engine.utils.datetime import utcnow

logger = structlog.get_logger()


class InMemoryWorkoutCatalog(WorkoutCatalog):
    """Catalog backed by a dict."""

    def __init__(self, workouts: Iterable[WorkoutDefinition] = ()) -> None:
        self._workouts: dict[str, WorkoutDefinition] = {w.workout_id: w for w in workouts}

    def add(self, workout: WorkoutDefinition) -> None:
        self._workouts[workout.workout_id] = workout

    async def get_workout_definition(self, workout_id: str) -> WorkoutDefinition:
        workout = self._workouts.get(workout_id)
        if workout is None:
            raise NotFoundError(f"Workout not found: {workout_id}", workout_id=workout_id)
        return workout


class InMemorySessionRepository(SessionRepository):
    """Repository backed by dicts.

    A single asyncio.Lock makes check-and-insert atomic across tasks.
    Only the last ``history_limit`` snapshots of each session are kept.
    """

    def __init__(self, *, history_limit: int = 64) -> None:
        self._active: dict[str, ActiveSession] = {}
        self._snapshots: dict[str, deque[SessionState]] = {}
        self._history_limit = history_limit
        self._lock = asyncio.Lock()

    async def create_active_record(self, user_id: str, session_id: str) -> bool:
        async with self._lock:
            if user_id in self._active:
                return False
            self._active[user_id] = ActiveSession(
                user_id=user_id,
                session_id=session_id,
                acquired_at=utcnow(),
            )
            return True

    async def delete_active_record(self, user_id: str) -> None:
        async with self._lock:
            self._active.pop(user_id, None)

    async def get_active_record(self, user_id: str) -> ActiveSession | None:
        return self._active.get(user_id)

    async def save_snapshot(self, state: SessionState) -> None:
        history = self._snapshots.get(state.session_id)
        if history is None:
            history = self._snapshots[state.session_id] = deque(maxlen=self._history_limit)
        history.append(state)

    async def load_latest_snapshot(self, session_id: str) -> SessionState:
        history = self._snapshots.get(session_id)
        if not history:
            raise NotFoundError(f"No snapshot for session: {session_id}", session_id=session_id)
        return history[-1]

    def history(self, session_id: str) -> list[SessionState]:
        """Retained snapshots of a session, oldest first."""
        return list(self._snapshots.get(session_id, ()))

    @property
    def active_records(self) -> dict[str, ActiveSession]:
        return dict(self._active)


class LoggingFeedbackSink(FeedbackSink):
    """Feedback sink that only logs the cue."""

    def __init__(self) -> None:
        self._log = logger.bind(service="feedback")

    def notify(self, kind: FeedbackKind, state: SessionState) -> None:
        self._log.info(
            "feedback.cue",
            kind=kind.value,
            session_id=state.session_id,
            exercise_index=state.current_exercise_index,
            set_number=state.current_set_number,
        )
