"""Session state model.

SessionState is the immutable snapshot emitted after every transition.
- 1 SessionState value = 1 point in a session's history
- Only the progression state machine produces new values
- Serialized as-is for persistence (JSON round-trip is lossless)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class SessionStatus(str, Enum):
    """Session lifecycle status."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"  # Performing a set
    RESTING = "resting"  # Rest countdown between sets
    PAUSED = "paused"  # Clock frozen
    COMPLETED = "completed"  # Final set done
    ABANDONED = "abandoned"  # Stopped before completion

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.ABANDONED)


class SetRecord(BaseModel):
    """A completed set, as performed."""

    model_config = ConfigDict(frozen=True)

    exercise_id: str
    exercise_index: int
    set_number: int
    reps: int | None = None
    weight_kg: float | None = None
    completed_at: datetime


class SessionState(BaseModel):
    """Snapshot of a workout session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    workout_id: str
    user_id: str
    status: SessionStatus = SessionStatus.NOT_STARTED

    # Progression position
    current_exercise_index: int = 0
    current_set_number: int = 1
    rest_remaining_seconds: int = 0

    # Time accounting
    total_elapsed_seconds: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    # Status restored by the next pause/resume toggle
    paused_from: SessionStatus | None = None

    completed_sets: tuple[SetRecord, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_paused(self) -> bool:
        return self.status == SessionStatus.PAUSED
