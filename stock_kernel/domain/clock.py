"""
Clock -- injectable source of the current time.

Aggregates stamp ``created_at``, ``updated_at`` and ``completed_at`` from a
``Clock`` rather than calling ``datetime.now()``, so tests can pin and step
time.  ``SystemClock`` is the only implementation that reads the real clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at a fixed instant until moved explicitly.

    ``now()`` is stable across calls; ``advance()`` steps it forward and
    ``set_time()`` jumps to a new instant.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
