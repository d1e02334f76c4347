"""Injectable time sources."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time as an aware UTC datetime."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    Manually driven clock for tests and simulations.

    Usage:
        clock = FixedClock()
        clock.advance(days=3, seconds=5)
    """

    def __init__(self, start: Optional[datetime] = None):
        start = start or datetime.now(timezone.utc)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, when: datetime) -> None:
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        with self._lock:
            self._now = when

    def advance(self, **delta) -> datetime:
        """Move forward by timedelta(**delta) and return the new time."""
        with self._lock:
            self._now = self._now + timedelta(**delta)
            return self._now
