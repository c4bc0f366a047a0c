"""Unit tests for SessionRegistry and engine lifecycle."""

from __future__ import annotations

import pytest

from workout_engine.collaborators.memory import InMemorySessionRepository, InMemoryWorkoutCatalog
from workout_engine.collaborators.sql import SqlSessionRepository
from workout_engine.config import get_settings
from workout_engine.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from workout_engine.lifecycle import get_registry, init_engine, shutdown_engine
from workout_engine.managers.registry import SessionRegistry
from workout_engine.models.session import SessionStatus
from tests.fakes import FlakyRepository, ManualClockFactory


@pytest.fixture
def catalog(two_by_three, short_workout, empty_workout) -> InMemoryWorkoutCatalog:
    return InMemoryWorkoutCatalog([two_by_three, short_workout, empty_workout])


@pytest.fixture
def registry(catalog, test_settings) -> SessionRegistry:
    return SessionRegistry(
        InMemorySessionRepository(),
        catalog,
        clock_factory=ManualClockFactory(),
        settings=test_settings,
    )


class TestSessionRegistry:
    async def test_start_by_workout_id(self, registry):
        state = await registry.start("wk-push", "user-1")

        assert state.status == SessionStatus.ACTIVE
        assert registry.get("user-1").snapshot() == state

    async def test_unknown_workout(self, registry):
        with pytest.raises(NotFoundError):
            await registry.start("wk-nope", "user-1")

    async def test_empty_workout(self, registry):
        with pytest.raises(ValidationError):
            await registry.start("wk-empty", "user-1")

        with pytest.raises(NotFoundError):
            registry.get("user-1")

    async def test_one_session_per_user(self, registry):
        await registry.start("wk-push", "user-1")
        await registry.start("wk-push", "user-2")

        with pytest.raises(ConflictError):
            await registry.start("wk-short", "user-1")

    async def test_resume_returns_live_session(self, registry):
        state = await registry.start("wk-push", "user-1")

        assert await registry.resume("user-1") == state

    async def test_resume_after_restart(self, catalog, session_scope, test_settings):
        repository = SqlSessionRepository(session_scope, config=test_settings.persistence)
        before = SessionRegistry(repository, catalog, clock_factory=ManualClockFactory(), settings=test_settings)
        await before.start("wk-short", "user-1")
        saved = await before.get("user-1").complete_set(reps=5)
        await before.close()

        after = SessionRegistry(repository, catalog, clock_factory=ManualClockFactory(), settings=test_settings)
        state = await after.resume("user-1")

        assert state == saved
        assert after.get("user-1").progress() == pytest.approx(1.0)

    async def test_resume_without_active_session(self, registry):
        with pytest.raises(NotFoundError):
            await registry.resume("user-1")

    async def test_resume_clears_record_left_by_finished_session(self, catalog, test_settings):
        repository = FlakyRepository()
        before = SessionRegistry(repository, catalog, clock_factory=ManualClockFactory(), settings=test_settings)
        await before.start("wk-push", "user-1")
        repository.fail_deletes = 1
        with pytest.raises(PersistenceError):
            await before.get("user-1").stop()
        await before.close()

        after = SessionRegistry(repository, catalog, clock_factory=ManualClockFactory(), settings=test_settings)
        with pytest.raises(NotFoundError):
            await after.resume("user-1")

        assert repository.active_records == {}
        state = await after.start("wk-short", "user-1")
        assert state.status == SessionStatus.ACTIVE


class TestEngineLifecycle:
    async def test_init_and_shutdown(self, monkeypatch, tmp_path, catalog):
        monkeypatch.setenv("WORKOUT_ENGINE_DATABASE__URL", f"sqlite+aiosqlite:///{tmp_path / 'lifecycle.db'}")
        get_settings.cache_clear()
        try:
            registry = await init_engine(catalog)
            assert get_registry() is registry

            state = await registry.start("wk-push", "user-1")
            assert state.status == SessionStatus.ACTIVE

            await shutdown_engine()
            assert get_registry() is None
        finally:
            get_settings.cache_clear()
