"""ActiveSessionGuard - at most one in-flight session per user.

The guard is the only writer of active-session records. Atomicity comes
from the repository's conditional insert, not from anything held here,
so two processes sharing a database are covered too.
"""

from __future__ import annotations

import structlog

from workout_engine.collaborators.base import ActiveSession, SessionRepository
from workout_engine.errors import ConflictError

logger = structlog.get_logger()


class ActiveSessionGuard:
    """Acquire/release the user's active-session slot."""

    def __init__(self, repository: SessionRepository) -> None:
        self._repository = repository
        self._log = logger.bind(component="active_session_guard")

    async def acquire(self, user_id: str, session_id: str) -> None:
        """Claim the slot for ``session_id``.

        Raises:
            ConflictError: If the user already has an active session
        """
        created = await self._repository.create_active_record(user_id, session_id)
        if created:
            self._log.info("guard.acquired", user_id=user_id, session_id=session_id)
            return

        existing = await self._repository.get_active_record(user_id)
        existing_id = existing.session_id if existing else None
        self._log.warning(
            "guard.conflict",
            user_id=user_id,
            session_id=session_id,
            existing_session_id=existing_id,
        )
        raise ConflictError(
            "user already has an active session",
            user_id=user_id,
            session_id=existing_id,
        )

    async def release(self, user_id: str) -> None:
        """Free the slot. Idempotent."""
        await self._repository.delete_active_record(user_id)
        self._log.info("guard.released", user_id=user_id)

    async def current(self, user_id: str) -> ActiveSession | None:
        return await self._repository.get_active_record(user_id)
