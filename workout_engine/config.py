"""Workout engine configuration management.

Configuration sources (in priority order):
1. Environment variables (WORKOUT_ENGINE_ prefix)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = "sqlite+aiosqlite:///./workout_engine.db"
    echo: bool = False


class ClockConfig(BaseModel):
    """Clock driver configuration."""

    # One tick per interval; production sessions always run at 1 Hz
    tick_interval_seconds: float = Field(default=1.0, gt=0)


class ProgressionConfig(BaseModel):
    """Set/exercise progression policy."""

    # Insert a rest period after the last set of an exercise as well
    rest_between_exercises: bool = False
    # Seconds added by extend_rest() when no explicit amount is given
    rest_extension_seconds: int = Field(default=30, ge=1)


class PersistenceConfig(BaseModel):
    """Snapshot persistence retry policy."""

    save_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=0.2, ge=0)


class LoggingConfig(BaseModel):
    """structlog output configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_logs: bool = False


class Settings(BaseSettings):
    """Workout engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="WORKOUT_ENGINE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    progression: ProgressionConfig = Field(default_factory=ProgressionConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over values read from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. WORKOUT_ENGINE_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/workout-engine/config.yaml
    """
    config_paths = [
        os.environ.get("WORKOUT_ENGINE_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/workout-engine/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    File values are passed as init kwargs; environment variables
    override them via pydantic-settings.
    """
    file_config = _load_config_file()
    return Settings(**file_config)
