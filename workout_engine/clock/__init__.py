"""Clock layer - time abstraction."""

from workout_engine.clock.asyncio_clock import AsyncioClock
from workout_engine.clock.base import Clock, ClockFactory, TickCallback

__all__ = ["AsyncioClock", "Clock", "ClockFactory", "TickCallback"]
