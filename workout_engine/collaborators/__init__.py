"""Collaborators - catalog, repository and feedback boundaries."""

from workout_engine.collaborators.base import (
    ActiveSession,
    FeedbackKind,
    FeedbackSink,
    SessionRepository,
    WorkoutCatalog,
)
from workout_engine.collaborators.memory import (
    InMemorySessionRepository,
    InMemoryWorkoutCatalog,
    LoggingFeedbackSink,
)
from workout_engine.collaborators.sql import SqlSessionRepository

__all__ = [
    "ActiveSession",
    "FeedbackKind",
    "FeedbackSink",
    "InMemorySessionRepository",
    "InMemoryWorkoutCatalog",
    "LoggingFeedbackSink",
    "SessionRepository",
    "SqlSessionRepository",
    "WorkoutCatalog",
]
