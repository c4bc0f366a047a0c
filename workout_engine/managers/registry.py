"""SessionRegistry - one WorkoutSessionManager per user.

Entry point for callers that address sessions by user and workout id
rather than holding manager instances themselves.
"""

from __future__ import annotations

import structlog

from workout_engine.clock import ClockFactory
from workout_engine.collaborators.base import FeedbackSink, SessionRepository, WorkoutCatalog
from workout_engine.config import Settings, get_settings
from workout_engine.engine.guard import ActiveSessionGuard
from workout_engine.errors import NotFoundError
from workout_engine.managers.session import WorkoutSessionManager
from workout_engine.models.session import SessionState

logger = structlog.get_logger()


class SessionRegistry:
    """Owns the per-user session managers."""

    def __init__(
        self,
        repository: SessionRepository,
        catalog: WorkoutCatalog,
        *,
        feedback: FeedbackSink | None = None,
        clock_factory: ClockFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._feedback = feedback
        self._clock_factory = clock_factory
        self._settings = settings or get_settings()
        self._managers: dict[str, WorkoutSessionManager] = {}
        self._log = logger.bind(service="session_registry")

    def get(self, user_id: str) -> WorkoutSessionManager:
        """Get the user's manager.

        Raises:
            NotFoundError: If the user has no session in this process
        """
        manager = self._managers.get(user_id)
        if manager is None or not manager.has_session:
            raise NotFoundError(f"No session for user: {user_id}", user_id=user_id)
        return manager

    def manager_for(self, user_id: str) -> WorkoutSessionManager:
        """Get or create the user's manager."""
        manager = self._managers.get(user_id)
        if manager is None:
            manager = WorkoutSessionManager(
                self._repository,
                feedback=self._feedback,
                clock_factory=self._clock_factory,
                settings=self._settings,
            )
            self._managers[user_id] = manager
        return manager

    async def start(self, workout_id: str, user_id: str) -> SessionState:
        """Look up a workout and start it for the user.

        Raises:
            NotFoundError: If the workout does not exist
            ValidationError: If the workout is not playable
            ConflictError: If the user already has an active session
        """
        workout = await self._catalog.get_workout_definition(workout_id)
        return await self.manager_for(user_id).start(workout, user_id)

    async def resume(self, user_id: str) -> SessionState:
        """Re-attach the user's in-flight session from its last snapshot.

        Returns the live state if this process already runs it.

        Raises:
            NotFoundError: If the user has no active session or no snapshot.
                A leftover record of a finished session is released first.
        """
        manager = self.manager_for(user_id)
        if manager.is_active:
            return manager.snapshot()

        record = await self._repository.get_active_record(user_id)
        if record is None:
            raise NotFoundError(f"No active session for user: {user_id}", user_id=user_id)

        state = await self._repository.load_latest_snapshot(record.session_id)
        if state.is_terminal:
            # Finished session whose slot release never landed
            self._log.warning(
                "registry.resume.stale_record",
                user_id=user_id,
                session_id=state.session_id,
                status=state.status.value,
            )
            await ActiveSessionGuard(self._repository).release(user_id)
            raise NotFoundError(f"No active session for user: {user_id}", user_id=user_id)

        workout = await self._catalog.get_workout_definition(state.workout_id)

        self._log.info(
            "registry.resume",
            user_id=user_id,
            session_id=state.session_id,
            status=state.status.value,
        )
        return await manager.resume(state, workout)

    async def close(self) -> None:
        """Detach every manager's clock. Sessions stay resumable."""
        for user_id, manager in list(self._managers.items()):
            try:
                await manager.close()
            except Exception as exc:
                self._log.warning("registry.close_failed", user_id=user_id, error=str(exc))
        self._managers.clear()
