"""Engine core - progression rules and the active-session guard."""

from workout_engine.engine.guard import ActiveSessionGuard
from workout_engine.engine.progression import (
    CompleteSet,
    Event,
    ExtendRest,
    PauseResume,
    SkipRest,
    Start,
    Stop,
    Tick,
    new_session,
    progress_fraction,
    transition,
)

__all__ = [
    "ActiveSessionGuard",
    "CompleteSet",
    "Event",
    "ExtendRest",
    "PauseResume",
    "SkipRest",
    "Start",
    "Stop",
    "Tick",
    "new_session",
    "progress_fraction",
    "transition",
]
