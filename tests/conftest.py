"""Test configuration and fixtures."""

from __future__ import annotations

import pytest

from workout_engine.config import Settings
from workout_engine.db.session import build_engine, build_session_scope, create_tables
from workout_engine.models.workout import ExercisePlan, WorkoutDefinition


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a per-test SQLite file."""
    return Settings(
        database={"url": f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}"},
        persistence={"save_attempts": 2, "retry_backoff_seconds": 0},
    )


@pytest.fixture
async def session_scope(test_settings: Settings):
    """Transaction-per-call session factory on a fresh database."""
    engine = build_engine(test_settings.database)
    await create_tables(engine)

    yield build_session_scope(engine)

    await engine.dispose()


@pytest.fixture
def two_by_three() -> WorkoutDefinition:
    """2 exercises x 3 sets, 60s / 45s rest."""
    return WorkoutDefinition(
        workout_id="wk-push",
        name="Push day",
        exercises=(
            ExercisePlan(exercise_id="bench", order=1, target_sets=3, target_reps=10, rest_seconds=60),
            ExercisePlan(exercise_id="ohp", order=2, target_sets=3, target_reps=8, rest_seconds=45),
        ),
    )


@pytest.fixture
def short_workout() -> WorkoutDefinition:
    """1 exercise x 2 sets with a 3 second rest."""
    return WorkoutDefinition(
        workout_id="wk-short",
        name="Quick",
        exercises=(
            ExercisePlan(exercise_id="squat", order=1, target_sets=2, target_reps=5, rest_seconds=3),
        ),
    )


@pytest.fixture
def empty_workout() -> WorkoutDefinition:
    return WorkoutDefinition(workout_id="wk-empty", name="Nothing", exercises=())
