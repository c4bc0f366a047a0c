"""Engine error taxonomy.

Every public operation either returns a SessionState or raises one of
these. ``code`` is stable and safe to surface to clients; ``details``
carries structured context for logs and UI decisions.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for all workout engine errors."""

    code: str = "engine_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(EngineError):
    """Malformed or empty workout input. Not retried."""

    code = "validation_error"


class ConflictError(EngineError):
    """Another active session already exists for the user.

    ``details["session_id"]`` names the existing session so callers can
    offer to resume it.
    """

    code = "conflict"


class StateError(EngineError):
    """Command is illegal for the session's current status."""

    code = "invalid_state"


class NotFoundError(EngineError):
    """Workout definition or session snapshot does not exist."""

    code = "not_found"


class PersistenceError(EngineError):
    """Snapshot or active-record write failed after all retries."""

    code = "persistence_error"
