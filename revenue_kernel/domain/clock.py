"""
Clock -- injectable source of "now".

Responsibility:
    Engines never read the wall clock.  Services that need the current
    moment (the trailing performance trend, recalculation timings) take a
    ``Clock`` in their constructor, so a test can pin "today" and get the
    same report every run.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place in the tree that
    reads system time.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta

_DEFAULT_PINNED = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


class Clock(ABC):
    """Supplies timezone-aware UTC datetimes; ``today()`` is derived from ``now()``."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Reads the host clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Pinned clock for tests.

    ``now()`` is stable between calls; it moves only through ``advance``
    (relative, in seconds) or ``set_time`` (absolute, clears any advance).
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._pinned = fixed_time or _DEFAULT_PINNED
        self._offset = timedelta()

    def now(self) -> datetime:
        return self._pinned + self._offset

    def set_time(self, time: datetime) -> None:
        self._pinned = time
        self._offset = timedelta()

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)
