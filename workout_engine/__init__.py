"""Workout execution engine.

Runs authored workout plans in real time: set/exercise progression,
rest countdowns, elapsed-time accounting and one active session per user.
"""

from workout_engine.errors import (
    ConflictError,
    EngineError,
    NotFoundError,
    PersistenceError,
    StateError,
    ValidationError,
)
from workout_engine.managers import SessionRegistry, WorkoutSessionManager
from workout_engine.models import (
    ExercisePlan,
    SessionState,
    SessionStatus,
    SetRecord,
    WorkoutDefinition,
)

__all__ = [
    "ConflictError",
    "EngineError",
    "ExercisePlan",
    "NotFoundError",
    "PersistenceError",
    "SessionRegistry",
    "SessionState",
    "SessionStatus",
    "SetRecord",
    "StateError",
    "ValidationError",
    "WorkoutDefinition",
    "WorkoutSessionManager",
]
