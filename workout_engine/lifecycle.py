"""Engine lifecycle management for application startup/shutdown.

Manages the startup and shutdown of:
- structlog configuration
- database tables and connections
- the global SessionRegistry
"""

from __future__ import annotations

import structlog

from workout_engine.collaborators.base import FeedbackSink, WorkoutCatalog
from workout_engine.collaborators.memory import LoggingFeedbackSink
from workout_engine.collaborators.sql import SqlSessionRepository
from workout_engine.config import Settings, get_settings
from workout_engine.db.session import close_db, init_db
from workout_engine.logging_config import configure_logging
from workout_engine.managers.registry import SessionRegistry

logger = structlog.get_logger()

# Global instance
_registry: SessionRegistry | None = None


async def init_engine(
    catalog: WorkoutCatalog,
    *,
    feedback: FeedbackSink | None = None,
    settings: Settings | None = None,
) -> SessionRegistry:
    """Initialize logging, storage and the session registry.

    Returns:
        The global SessionRegistry
    """
    global _registry

    settings = settings or get_settings()
    configure_logging(settings.logging)

    if _registry is not None:
        logger.warning("engine.already_initialized")
        return _registry

    await init_db()

    _registry = SessionRegistry(
        SqlSessionRepository(config=settings.persistence),
        catalog,
        feedback=feedback or LoggingFeedbackSink(),
        settings=settings,
    )
    logger.info(
        "engine.init",
        tick_interval_seconds=settings.clock.tick_interval_seconds,
        rest_between_exercises=settings.progression.rest_between_exercises,
    )
    return _registry


async def shutdown_engine() -> None:
    """Detach running sessions and close the database.

    In-flight sessions are not abandoned; they can be resumed from their
    last snapshot on the next start.
    """
    global _registry

    if _registry is not None:
        await _registry.close()
        _registry = None

    await close_db()
    logger.info("engine.shutdown")


def get_registry() -> SessionRegistry | None:
    """Get the global session registry instance."""
    return _registry
