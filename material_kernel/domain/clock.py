"""
Injectable time source.

Trace events carry an ``event_time``; whoever produces them takes it from a
``Clock`` instead of reading the wall clock, so tests can pin and step time.
``SystemClock`` is the only implementation that touches the real clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError(f"Clock times must be timezone-aware, got {value!r}")
    return value


class Clock(ABC):
    """Source of timezone-aware ``datetime`` values."""

    @abstractmethod
    def now(self) -> datetime: ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` keeps returning the same instant until ``set_time``,
    ``advance`` or ``tick`` moves it.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = _require_aware(fixed_time or DEFAULT_TEST_TIME)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = _require_aware(time)

    def advance(self, seconds: float | timedelta = 1) -> None:
        step = seconds if isinstance(seconds, timedelta) else timedelta(seconds=seconds)
        self._current += step

    def tick(self) -> datetime:
        """Step one second forward and return the new instant."""
        self.advance(1)
        return self._current
