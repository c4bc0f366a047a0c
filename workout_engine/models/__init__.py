"""Domain and persistence models."""

from workout_engine.models.records import ActiveSessionRecord, SessionSnapshotRecord
from workout_engine.models.session import SessionState, SessionStatus, SetRecord
from workout_engine.models.workout import ExercisePlan, WorkoutDefinition, validate_workout

__all__ = [
    "ActiveSessionRecord",
    "ExercisePlan",
    "SessionSnapshotRecord",
    "SessionState",
    "SessionStatus",
    "SetRecord",
    "WorkoutDefinition",
    "validate_workout",
]
