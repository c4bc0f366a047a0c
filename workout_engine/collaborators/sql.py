"""SqlSessionRepository - SessionRepository on SQLModel async.

Active-session acquisition relies on the ``active_sessions`` primary key:
the insert either succeeds or fails with IntegrityError, so there is no
read-then-write window for two devices to slip through.

Snapshots are keyed by session id; each save replaces the previous one.
"""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from workout_engine.collaborators.base import ActiveSession, SessionRepository
from workout_engine.config import PersistenceConfig
from workout_engine.db.session import SessionScope, get_async_session
from workout_engine.errors import NotFoundError, PersistenceError
from workout_engine.models.records import ActiveSessionRecord, SessionSnapshotRecord
from workout_engine.models.session import SessionState
from workout_engine.utils.datetime import utcnow

logger = structlog.get_logger()


class SqlSessionRepository(SessionRepository):
    """Session repository backed by the configured database.

    Each call runs in its own short transaction obtained from
    ``session_scope`` (defaults to the global get_async_session).
    """

    def __init__(
        self,
        session_scope: SessionScope = get_async_session,
        *,
        config: PersistenceConfig | None = None,
    ) -> None:
        self._session_scope = session_scope
        self._config = config or PersistenceConfig()
        self._log = logger.bind(repository="sql")

    async def create_active_record(self, user_id: str, session_id: str) -> bool:
        try:
            async with self._session_scope() as db:
                db.add(
                    ActiveSessionRecord(
                        user_id=user_id,
                        session_id=session_id,
                        acquired_at=utcnow(),
                    )
                )
                await db.flush()
        except IntegrityError:
            self._log.info(
                "repository.active_record.conflict",
                user_id=user_id,
                session_id=session_id,
            )
            return False
        except SQLAlchemyError as exc:
            raise PersistenceError(
                "failed to create active session record",
                user_id=user_id,
                session_id=session_id,
                error=str(exc),
            ) from exc

        return True

    async def delete_active_record(self, user_id: str) -> None:
        try:
            async with self._session_scope() as db:
                await db.execute(
                    delete(ActiveSessionRecord).where(ActiveSessionRecord.user_id == user_id)
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                "failed to delete active session record",
                user_id=user_id,
                error=str(exc),
            ) from exc

    async def get_active_record(self, user_id: str) -> ActiveSession | None:
        try:
            async with self._session_scope() as db:
                result = await db.execute(
                    select(ActiveSessionRecord).where(ActiveSessionRecord.user_id == user_id)
                )
                record = result.scalars().first()
        except SQLAlchemyError as exc:
            raise PersistenceError(
                "failed to read active session record",
                user_id=user_id,
                error=str(exc),
            ) from exc

        if record is None:
            return None
        return ActiveSession(
            user_id=record.user_id,
            session_id=record.session_id,
            acquired_at=record.acquired_at,
        )

    async def save_snapshot(self, state: SessionState) -> None:
        """Overwrite the session's snapshot, retrying with exponential backoff."""
        attempts = self._config.save_attempts
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                async with self._session_scope() as db:
                    await db.merge(
                        SessionSnapshotRecord(
                            session_id=state.session_id,
                            user_id=state.user_id,
                            status=state.status.value,
                            payload=state.model_dump_json(),
                            saved_at=utcnow(),
                        )
                    )
                return
            except SQLAlchemyError as exc:
                last_error = exc
                self._log.warning(
                    "repository.save_snapshot.failed",
                    session_id=state.session_id,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(exc),
                )
                if attempt < attempts:
                    await asyncio.sleep(self._config.retry_backoff_seconds * 2 ** (attempt - 1))

        raise PersistenceError(
            "failed to save session snapshot",
            session_id=state.session_id,
            attempts=attempts,
        ) from last_error

    async def load_latest_snapshot(self, session_id: str) -> SessionState:
        try:
            async with self._session_scope() as db:
                record = await db.get(SessionSnapshotRecord, session_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(
                "failed to load session snapshot",
                session_id=session_id,
                error=str(exc),
            ) from exc

        if record is None:
            raise NotFoundError(f"No snapshot for session: {session_id}", session_id=session_id)

        return SessionState.model_validate_json(record.payload)
