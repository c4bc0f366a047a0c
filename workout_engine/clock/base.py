"""Clock base class - time abstraction.

Clock is responsible ONLY for delivering ticks.
It does NOT know about:
- Sessions or their status
- Rest periods or progression
- Persistence

The session manager turns ticks into Tick events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

TickCallback = Callable[[], Awaitable[None]]


class Clock(ABC):
    """Abstract ticking clock.

    Contract:
    - one tick per interval while started and not paused
    - no ticks while paused or after stop
    - resume never replays ticks missed while paused
    - stop is idempotent and releases the underlying timer
    """

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Started, not paused and not stopped."""
        ...

    @property
    @abstractmethod
    def is_paused(self) -> bool:
        ...

    @abstractmethod
    async def start(self) -> None:
        """Begin ticking."""
        ...

    @abstractmethod
    async def pause(self) -> None:
        """Stop delivering ticks until resume()."""
        ...

    @abstractmethod
    async def resume(self) -> None:
        """Continue ticking after pause(), starting a fresh interval."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop permanently and release resources."""
        ...


ClockFactory = Callable[[TickCallback], Clock]
