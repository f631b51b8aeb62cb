"""Time source used for pacing, rate windows, and cache expiry."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    """Injectable time source.

    ``monotonic`` drives request spacing and cache TTLs, ``now`` drives
    rate-window reset timestamps, and ``sleep`` is the only way the library
    suspends a caller.
    """

    @abstractmethod
    def monotonic(self) -> float:
        ...

    @abstractmethod
    def now(self) -> datetime:
        """Current wall-clock time, timezone-aware UTC."""
        ...

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Real clock backed by ``time.monotonic`` and ``time.sleep``."""

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


DEFAULT_CLOCK = SystemClock()
