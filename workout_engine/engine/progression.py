"""Progression state machine.

Pure function mapping (state, event) -> state. No clocks, no I/O:
time only advances through Tick events and every timestamp comes from
the caller-supplied ``now``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from workout_engine.errors import StateError
from workout_engine.models.session import SessionState, SessionStatus, SetRecord
from workout_engine.models.workout import WorkoutDefinition, validate_workout
from workout_engine.utils.datetime import utcnow


@dataclass(frozen=True, slots=True)
class Start:
    pass


@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class CompleteSet:
    """Finish the current set, optionally recording what was performed."""

    reps: int | None = None
    weight_kg: float | None = None


@dataclass(frozen=True, slots=True)
class SkipRest:
    pass


@dataclass(frozen=True, slots=True)
class ExtendRest:
    seconds: int


@dataclass(frozen=True, slots=True)
class PauseResume:
    pass


@dataclass(frozen=True, slots=True)
class Stop:
    pass


Event = Start | Tick | CompleteSet | SkipRest | ExtendRest | PauseResume | Stop


def new_session(session_id: str, workout_id: str, user_id: str) -> SessionState:
    """Initial NOT_STARTED state for a session."""
    return SessionState(session_id=session_id, workout_id=workout_id, user_id=user_id)


def transition(
    state: SessionState,
    event: Event,
    workout: WorkoutDefinition,
    *,
    now: datetime | None = None,
    rest_between_exercises: bool = False,
) -> SessionState:
    """Apply one event to a session state.

    Args:
        state: Current state
        event: Event to apply
        workout: Definition the session is executing
        now: Timestamp used for started_at/completed_at/set records
        rest_between_exercises: Rest after an exercise's last set too

    Returns:
        The next state. A Tick while paused returns ``state`` unchanged.

    Raises:
        StateError: Event not allowed in the current status
        ValidationError: Start on an unplayable workout
    """
    if state.is_terminal:
        raise StateError("session already finished", status=state.status.value)

    now = now or utcnow()

    if isinstance(event, Start):
        return _start(state, workout, now)
    if state.status == SessionStatus.NOT_STARTED:
        if isinstance(event, Stop):
            return _abandon(state, now)
        raise _illegal(state, event)

    if isinstance(event, Tick):
        return _tick(state)
    if isinstance(event, CompleteSet):
        return _complete_set(state, event, workout, now, rest_between_exercises)
    if isinstance(event, SkipRest):
        if state.status != SessionStatus.RESTING:
            raise _illegal(state, event)
        return _end_rest(state)
    if isinstance(event, ExtendRest):
        if state.status != SessionStatus.RESTING:
            raise _illegal(state, event)
        return state.model_copy(
            update={"rest_remaining_seconds": state.rest_remaining_seconds + max(event.seconds, 0)}
        )
    if isinstance(event, PauseResume):
        return _toggle_pause(state)
    if isinstance(event, Stop):
        return _abandon(state, now)

    raise TypeError(f"unknown event: {event!r}")


def progress_fraction(state: SessionState, workout: WorkoutDefinition) -> float:
    """Fraction of the workout done, counting the current set as reached.

    ``(exercise_index + set_number / target_sets) / exercise_count``
    """
    if state.status == SessionStatus.COMPLETED:
        return 1.0
    if not workout.exercises:
        return 0.0

    exercise = workout.exercise_at(state.current_exercise_index)
    within = state.current_set_number / exercise.target_sets
    return (state.current_exercise_index + within) / workout.exercise_count


def _illegal(state: SessionState, event: Event) -> StateError:
    name = type(event).__name__
    return StateError(
        f"{name} not allowed while {state.status.value}",
        status=state.status.value,
        event=name,
    )


def _start(state: SessionState, workout: WorkoutDefinition, now: datetime) -> SessionState:
    if state.status != SessionStatus.NOT_STARTED:
        raise _illegal(state, Start())

    validate_workout(workout)
    return state.model_copy(
        update={
            "status": SessionStatus.ACTIVE,
            "current_exercise_index": 0,
            "current_set_number": 1,
            "rest_remaining_seconds": 0,
            "started_at": now,
        }
    )


def _tick(state: SessionState) -> SessionState:
    if state.status == SessionStatus.PAUSED:
        return state

    elapsed = state.total_elapsed_seconds + 1
    if state.status != SessionStatus.RESTING:
        return state.model_copy(update={"total_elapsed_seconds": elapsed})

    remaining = max(state.rest_remaining_seconds - 1, 0)
    if remaining == 0:
        return _end_rest(state.model_copy(update={"total_elapsed_seconds": elapsed}))
    return state.model_copy(
        update={"total_elapsed_seconds": elapsed, "rest_remaining_seconds": remaining}
    )


def _end_rest(state: SessionState) -> SessionState:
    return state.model_copy(
        update={"status": SessionStatus.ACTIVE, "rest_remaining_seconds": 0}
    )


def _rest_or_active(rest_seconds: int) -> dict:
    if rest_seconds > 0:
        return {"status": SessionStatus.RESTING, "rest_remaining_seconds": rest_seconds}
    return {"status": SessionStatus.ACTIVE, "rest_remaining_seconds": 0}


def _complete_set(
    state: SessionState,
    event: CompleteSet,
    workout: WorkoutDefinition,
    now: datetime,
    rest_between_exercises: bool,
) -> SessionState:
    if state.status != SessionStatus.ACTIVE:
        raise _illegal(state, event)

    index = state.current_exercise_index
    exercise = workout.exercise_at(index)
    record = SetRecord(
        exercise_id=exercise.exercise_id,
        exercise_index=index,
        set_number=state.current_set_number,
        reps=event.reps,
        weight_kg=event.weight_kg,
        completed_at=now,
    )
    sets = state.completed_sets + (record,)

    if state.current_set_number < exercise.target_sets:
        return state.model_copy(
            update={
                "current_set_number": state.current_set_number + 1,
                "completed_sets": sets,
                **_rest_or_active(exercise.rest_seconds),
            }
        )

    if index + 1 < workout.exercise_count:
        rest = exercise.rest_seconds if rest_between_exercises else 0
        return state.model_copy(
            update={
                "current_exercise_index": index + 1,
                "current_set_number": 1,
                "completed_sets": sets,
                **_rest_or_active(rest),
            }
        )

    return state.model_copy(
        update={
            "status": SessionStatus.COMPLETED,
            "rest_remaining_seconds": 0,
            "completed_at": now,
            "completed_sets": sets,
        }
    )


def _toggle_pause(state: SessionState) -> SessionState:
    if state.status == SessionStatus.PAUSED:
        return state.model_copy(
            update={"status": state.paused_from or SessionStatus.ACTIVE, "paused_from": None}
        )
    return state.model_copy(update={"status": SessionStatus.PAUSED, "paused_from": state.status})


def _abandon(state: SessionState, now: datetime) -> SessionState:
    return state.model_copy(
        update={
            "status": SessionStatus.ABANDONED,
            "rest_remaining_seconds": 0,
            "paused_from": None,
            "completed_at": now,
        }
    )
