"""Manager layer - session orchestration."""

from workout_engine.managers.registry import SessionRegistry
from workout_engine.managers.session import WorkoutSessionManager

__all__ = ["SessionRegistry", "WorkoutSessionManager"]
