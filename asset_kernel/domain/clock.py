"""
Time sources for the asset kernel.

Every timestamp the kernel writes (deployed_at, picked_up_at, delivered_at,
event created_at, batch codes) is read from the Clock a service was built
with.  SystemClock is the only place that looks at the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, time, timedelta

# Fixed instant used by DeterministicClock unless a test picks another.
DEFAULT_TEST_INSTANT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        """``now()`` normalized to UTC; batch codes are built from this."""
        return self.now().astimezone(UTC)


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock for tests.

    Time stands still until the test moves it with ``advance()`` or
    ``set_time()``, so two operations in one test share a timestamp unless
    the test says otherwise.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or DEFAULT_TEST_INSTANT

    def now(self) -> datetime:
        return self._current

    def set_time(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self._current = instant

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward and return the new time."""
        self._current += timedelta(seconds=seconds)
        return self._current


def utc_day_bounds(first: date, last: date) -> tuple[datetime, datetime]:
    """
    Half-open UTC interval covering the calendar days ``first`` to ``last``.

    Both days are included: the end bound is midnight after ``last``.
    """
    start = datetime.combine(first, time.min, tzinfo=UTC)
    end = datetime.combine(last + timedelta(days=1), time.min, tzinfo=UTC)
    return start, end
