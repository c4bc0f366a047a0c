"""Unit tests for settings loading."""

from __future__ import annotations

from workout_engine.config import Settings, _load_config_file


def test_defaults():
    settings = Settings()

    assert settings.clock.tick_interval_seconds == 1.0
    assert settings.progression.rest_between_exercises is False
    assert settings.progression.rest_extension_seconds == 30
    assert settings.persistence.save_attempts == 3


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("WORKOUT_ENGINE_PROGRESSION__REST_BETWEEN_EXERCISES", "true")
    monkeypatch.setenv("WORKOUT_ENGINE_CLOCK__TICK_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("WORKOUT_ENGINE_LOGGING__JSON_LOGS", "true")

    settings = Settings()

    assert settings.progression.rest_between_exercises is True
    assert settings.clock.tick_interval_seconds == 0.5
    assert settings.logging.json_logs is True


def test_yaml_file_loaded(monkeypatch, tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text(
        "database:\n"
        "  url: sqlite+aiosqlite:///./other.db\n"
        "persistence:\n"
        "  save_attempts: 5\n"
    )
    monkeypatch.setenv("WORKOUT_ENGINE_CONFIG_FILE", str(config_file))

    settings = Settings(**_load_config_file())

    assert settings.database.url == "sqlite+aiosqlite:///./other.db"
    assert settings.persistence.save_attempts == 5


def test_env_overrides_yaml(monkeypatch, tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("persistence:\n  save_attempts: 5\n")
    monkeypatch.setenv("WORKOUT_ENGINE_CONFIG_FILE", str(config_file))
    monkeypatch.setenv("WORKOUT_ENGINE_PERSISTENCE__SAVE_ATTEMPTS", "7")

    settings = Settings(**_load_config_file())

    assert settings.persistence.save_attempts == 7
