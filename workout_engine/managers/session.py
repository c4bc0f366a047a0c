"""WorkoutSessionManager - manages one user's workout session lifecycle.

Key responsibilities:
- serialize commands and clock ticks through a single lock
- feed them to the progression state machine
- keep the clock in lockstep with pause/resume/terminal states
- persist and emit exactly one snapshot per transition
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog

from workout_engine.clock import AsyncioClock, Clock, ClockFactory, TickCallback
from workout_engine.collaborators.base import FeedbackKind, FeedbackSink, SessionRepository
from workout_engine.config import Settings, get_settings
from workout_engine.engine.guard import ActiveSessionGuard
from workout_engine.engine.progression import (
    CompleteSet,
    Event,
    ExtendRest,
    PauseResume,
    SkipRest,
    Start,
    Stop,
    Tick,
    new_session,
    progress_fraction,
    transition,
)
from workout_engine.errors import (
    ConflictError,
    PersistenceError,
    StateError,
    ValidationError,
)
from workout_engine.models.session import SessionState, SessionStatus
from workout_engine.models.workout import WorkoutDefinition, validate_workout
from workout_engine.utils.datetime import utcnow

logger = structlog.get_logger()

StateCallback = Callable[[SessionState], Awaitable[None] | None]


class WorkoutSessionManager:
    """Runs a user's workout session in real time.

    One instance per user. The in-memory state is authoritative for the
    running session; the repository holds the recovery point.

    State-change callbacks run while the manager's lock is held, in
    emission order. They must not await commands on the same manager.
    """

    def __init__(
        self,
        repository: SessionRepository,
        *,
        feedback: FeedbackSink | None = None,
        clock_factory: ClockFactory | None = None,
        settings: Settings | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repository = repository
        self._guard = ActiveSessionGuard(repository)
        self._feedback = feedback
        self._settings = settings or get_settings()
        self._clock_factory = clock_factory or self._default_clock
        self._now = now
        self._log = logger.bind(manager="session")

        self._lock = asyncio.Lock()
        self._state: SessionState | None = None
        self._workout: WorkoutDefinition | None = None
        self._clock: Clock | None = None
        self._subscribers: list[StateCallback] = []

    def _default_clock(self, on_tick: TickCallback) -> Clock:
        return AsyncioClock(
            on_tick,
            interval_seconds=self._settings.clock.tick_interval_seconds,
        )

    # Queries

    @property
    def has_session(self) -> bool:
        return self._state is not None

    @property
    def is_active(self) -> bool:
        """A non-terminal session is attached."""
        return self._state is not None and not self._state.is_terminal

    @property
    def workout(self) -> WorkoutDefinition | None:
        return self._workout

    def snapshot(self) -> SessionState:
        """Current state. Side-effect free.

        Raises:
            StateError: If no session was started or resumed
        """
        if self._state is None:
            raise StateError("no session", status=None)
        return self._state

    def progress(self) -> float:
        """Progress fraction of the current session (0.0 - 1.0)."""
        state = self.snapshot()
        return progress_fraction(state, self._require_workout())

    def on_state_change(self, callback: StateCallback) -> Callable[[], None]:
        """Subscribe to emitted snapshots.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # Commands

    async def start(self, workout: WorkoutDefinition, user_id: str) -> SessionState:
        """Start a new session.

        Raises:
            ValidationError: If the workout is not playable
            ConflictError: If the user already has an active session
        """
        async with self._lock:
            if self.is_active:
                raise ConflictError(
                    "session already in progress",
                    user_id=user_id,
                    session_id=self._state.session_id,
                )

            try:
                validate_workout(workout)
            except ValidationError as exc:
                self._log.warning(
                    "session.start.invalid_workout",
                    user_id=user_id,
                    workout_id=workout.workout_id,
                    error=exc.message,
                )
                raise

            session_id = f"wsess-{uuid.uuid4().hex[:12]}"
            self._log.info(
                "session.start",
                session_id=session_id,
                user_id=user_id,
                workout_id=workout.workout_id,
                exercises=workout.exercise_count,
            )

            if self._state is not None:
                await self._release_leftover_slot(self._state)
            await self._guard.acquire(user_id, session_id)

            state = transition(
                new_session(session_id, workout.workout_id, user_id),
                Start(),
                workout,
                now=self._now(),
            )
            self._workout = workout
            self._clock = self._clock_factory(self._on_tick)
            await self._clock.start()

            await self._commit(state)
            return state

    async def resume(self, state: SessionState, workout: WorkoutDefinition) -> SessionState:
        """Re-attach to a persisted session, e.g. after an app restart.

        Time that passed while detached is not counted.

        Raises:
            StateError: If the snapshot is terminal or never started
            ValidationError: If the workout does not match the snapshot
            ConflictError: If the user's slot belongs to another session
        """
        async with self._lock:
            if self.is_active:
                raise ConflictError(
                    "session already in progress",
                    user_id=state.user_id,
                    session_id=self._state.session_id,
                )
            if state.is_terminal:
                raise StateError("session already finished", status=state.status.value)
            if state.status == SessionStatus.NOT_STARTED:
                raise StateError("session was never started", status=state.status.value)
            if state.workout_id != workout.workout_id:
                raise ValidationError(
                    "workout does not match session",
                    session_id=state.session_id,
                    workout_id=workout.workout_id,
                )
            validate_workout(workout)

            record = await self._guard.current(state.user_id)
            if record is None:
                await self._guard.acquire(state.user_id, state.session_id)
            elif record.session_id != state.session_id:
                raise ConflictError(
                    "user already has an active session",
                    user_id=state.user_id,
                    session_id=record.session_id,
                )

            self._state = state
            self._workout = workout
            self._clock = self._clock_factory(self._on_tick)
            await self._clock.start()
            if state.is_paused:
                await self._clock.pause()

            self._log.info(
                "session.resumed",
                session_id=state.session_id,
                user_id=state.user_id,
                status=state.status.value,
            )
            return state

    async def pause_resume(self) -> SessionState:
        """Toggle between PAUSED and the status it was paused from."""
        return await self._apply(PauseResume(), command="pause_resume")

    async def complete_set(
        self,
        *,
        reps: int | None = None,
        weight_kg: float | None = None,
    ) -> SessionState:
        """Finish the current set, recording reps/weight if given."""
        return await self._apply(CompleteSet(reps=reps, weight_kg=weight_kg), command="complete_set")

    async def skip_rest(self) -> SessionState:
        return await self._apply(SkipRest(), command="skip_rest")

    async def extend_rest(self, seconds: int | None = None) -> SessionState:
        """Add time to the running rest countdown."""
        if seconds is None:
            seconds = self._settings.progression.rest_extension_seconds
        return await self._apply(ExtendRest(seconds=seconds), command="extend_rest")

    async def stop(self) -> SessionState:
        """Abandon the session. Idempotent once terminal."""
        async with self._lock:
            state = self.snapshot()
            if state.is_terminal:
                self._log.debug(
                    "session.stop.already_finished",
                    session_id=state.session_id,
                    status=state.status.value,
                )
                await self._release_leftover_slot(state)
                return state

            self._log.info("session.stop", session_id=state.session_id, status=state.status.value)
            new_state = self._transition(state, Stop())
            await self._after_transition(state, new_state, Stop())
            return new_state

    async def close(self) -> None:
        """Detach the clock without ending the session (shutdown path)."""
        async with self._lock:
            if self._clock is not None:
                await self._clock.stop()
                self._clock = None

    # Internals

    def _require_workout(self) -> WorkoutDefinition:
        if self._workout is None:
            raise StateError("no session", status=None)
        return self._workout

    def _transition(self, state: SessionState, event: Event) -> SessionState:
        return transition(
            state,
            event,
            self._require_workout(),
            now=self._now(),
            rest_between_exercises=self._settings.progression.rest_between_exercises,
        )

    async def _apply(self, event: Event, *, command: str) -> SessionState:
        async with self._lock:
            state = self.snapshot()
            try:
                new_state = self._transition(state, event)
            except StateError as exc:
                self._log.warning(
                    "session.illegal_command",
                    command=command,
                    session_id=state.session_id,
                    status=state.status.value,
                    error=exc.message,
                )
                raise

            await self._after_transition(state, new_state, event)
            return new_state

    async def _on_tick(self) -> None:
        async with self._lock:
            state = self._state
            if state is None or state.is_terminal or state.is_paused:
                self._log.debug(
                    "session.tick_dropped",
                    status=state.status.value if state else None,
                )
                return

            new_state = self._transition(state, Tick())
            try:
                await self._after_transition(state, new_state, Tick())
            except PersistenceError as exc:
                self._log.exception(
                    "session.tick_persist_failed",
                    session_id=state.session_id,
                    error=exc.message,
                )

    async def _after_transition(
        self,
        previous: SessionState,
        state: SessionState,
        event: Event,
    ) -> None:
        await self._sync_clock(previous, state)
        self._emit_feedback(previous, state, event)

        if not state.is_terminal:
            await self._commit(state)
            return

        try:
            await self._commit(state)
        finally:
            await self._finish(state)

    async def _sync_clock(self, previous: SessionState, state: SessionState) -> None:
        if self._clock is None or state.is_terminal:
            return
        if state.is_paused and not previous.is_paused:
            await self._clock.pause()
        elif previous.is_paused and not state.is_paused:
            await self._clock.resume()

    async def _finish(self, state: SessionState) -> None:
        """Release the clock and the user's slot, whatever else failed."""
        try:
            if self._clock is not None:
                await self._clock.stop()
                self._clock = None
        finally:
            await self._guard.release(state.user_id)
            self._log.info(
                "session.finished",
                session_id=state.session_id,
                status=state.status.value,
                elapsed_seconds=state.total_elapsed_seconds,
                sets=len(state.completed_sets),
            )

    async def _release_leftover_slot(self, state: SessionState) -> None:
        """Free the slot a finished session failed to release."""
        record = await self._guard.current(state.user_id)
        if record is None or record.session_id != state.session_id:
            return

        self._log.warning(
            "session.release_retry",
            session_id=state.session_id,
            user_id=state.user_id,
        )
        await self._guard.release(state.user_id)

    async def _commit(self, state: SessionState) -> None:
        self._state = state
        await self._publish(state)

        try:
            await self._repository.save_snapshot(state)
        except PersistenceError:
            self._log.error(
                "session.persist_failed",
                session_id=state.session_id,
                status=state.status.value,
            )
            raise
        except Exception as exc:
            self._log.error(
                "session.persist_failed",
                session_id=state.session_id,
                status=state.status.value,
                error=str(exc),
            )
            raise PersistenceError(
                "failed to save session snapshot",
                session_id=state.session_id,
                error=str(exc),
            ) from exc

    async def _publish(self, state: SessionState) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(state)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._log.exception(
                    "session.subscriber_failed",
                    session_id=state.session_id,
                    error=str(exc),
                )

    def _emit_feedback(self, previous: SessionState, state: SessionState, event: Event) -> None:
        if self._feedback is None:
            return

        kinds: list[FeedbackKind] = []
        if isinstance(event, CompleteSet):
            kinds.append(FeedbackKind.SET_COMPLETED)
        if previous.status == SessionStatus.ACTIVE and state.status == SessionStatus.RESTING:
            kinds.append(FeedbackKind.REST_STARTED)
        if previous.status == SessionStatus.RESTING and state.status == SessionStatus.ACTIVE:
            kinds.append(FeedbackKind.REST_ENDED)
        if state.status == SessionStatus.COMPLETED:
            kinds.append(FeedbackKind.WORKOUT_COMPLETED)
        elif state.status == SessionStatus.ABANDONED:
            kinds.append(FeedbackKind.WORKOUT_ABANDONED)

        for kind in kinds:
            try:
                self._feedback.notify(kind, state)
            except Exception as exc:
                self._log.exception(
                    "session.feedback_failed",
                    session_id=state.session_id,
                    kind=kind.value,
                    error=str(exc),
                )
