"""
Time sources for the ledger.

Every timestamp the ledger stores (``created_at``, ``approved_at``,
``started_at``, ``ended_at``, ``completed_at``) comes from the Clock a
service was constructed with.  Callers never pass timestamps in.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests and replays.

    Time only moves when ``advance()`` is called, so records written in
    one step share a timestamp and ordering falls back to ``seq``.
    """

    def __init__(self, start: datetime = DEFAULT_TEST_TIME):
        if start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start time")
        self._current = start

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward by ``seconds`` and return the new time."""
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._current += timedelta(seconds=seconds)
        return self._current
