"""Collaborator interfaces consumed by the engine.

- WorkoutCatalog: read-only source of workout definitions
- SessionRepository: active-session records and snapshot storage
- FeedbackSink: haptic/audio cues, fire-and-forget

The engine owns none of these; implementations are injected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from workout_engine.models.session import SessionState
from workout_engine.models.workout import WorkoutDefinition


@dataclass(frozen=True, slots=True)
class ActiveSession:
    """A user's in-flight session marker."""

    user_id: str
    session_id: str
    acquired_at: datetime | None = None


class FeedbackKind(str, Enum):
    """Moments the user gets a cue for."""

    SET_COMPLETED = "set_completed"
    REST_STARTED = "rest_started"
    REST_ENDED = "rest_ended"
    WORKOUT_COMPLETED = "workout_completed"
    WORKOUT_ABANDONED = "workout_abandoned"


class WorkoutCatalog(ABC):
    """Read-only workout definition lookup."""

    @abstractmethod
    async def get_workout_definition(self, workout_id: str) -> WorkoutDefinition:
        """Get a workout definition.

        Raises:
            NotFoundError: If the workout does not exist
        """
        ...


class SessionRepository(ABC):
    """Persistence boundary for sessions.

    ``create_active_record`` MUST be an atomic check-and-insert: two
    concurrent calls for the same user can never both return True.
    """

    @abstractmethod
    async def create_active_record(self, user_id: str, session_id: str) -> bool:
        """Insert the user's active-session marker.

        Returns:
            True if created, False if the user already has one
        """
        ...

    @abstractmethod
    async def delete_active_record(self, user_id: str) -> None:
        """Delete the marker. No-op if absent."""
        ...

    @abstractmethod
    async def get_active_record(self, user_id: str) -> ActiveSession | None:
        ...

    @abstractmethod
    async def save_snapshot(self, state: SessionState) -> None:
        """Persist one snapshot.

        Raises:
            PersistenceError: If the write keeps failing
        """
        ...

    @abstractmethod
    async def load_latest_snapshot(self, session_id: str) -> SessionState:
        """Load the most recently saved snapshot.

        Raises:
            NotFoundError: If nothing was saved for the session
        """
        ...


class FeedbackSink(ABC):
    """Fire-and-forget user feedback. Return values are never consulted."""

    @abstractmethod
    def notify(self, kind: FeedbackKind, state: SessionState) -> None:
        ...
