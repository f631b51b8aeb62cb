"""Per-provider call budget and request spacing.

Each provider owns exactly one ``RateGate``. The gate answers two questions
before a request goes out: is there budget left in the current window, and
has enough time passed since the previous request? ``acquire`` reserves a
budget slot and claims the next release time under the gate's lock, then
waits for that time with the lock released. A provider called from several
batch worker threads therefore never has more requests in flight than it
has budget, and never issues two requests closer together than
``min_interval``.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from marketquotes.clock import DEFAULT_CLOCK, Clock
from marketquotes.models.rate_limit import RateLimit

# Budget for providers with no call limit (the synthetic mock).
UNLIMITED = sys.maxsize


@dataclass
class RateGateState:
    """Mutable gate state, written only by the owning provider's request path.

    Attributes:
        remaining_calls: Calls left in the current window.
        reset_at: Wall-clock time the budget refills, None if not exhausted.
        last_request_at: Monotonic time the most recently claimed request is
            released.
        in_flight: Reserved slots whose response has not come back yet.
    """

    remaining_calls: int
    reset_at: datetime | None = None
    last_request_at: float | None = None
    in_flight: int = 0

    @property
    def available(self) -> int:
        return max(0, self.remaining_calls - self.in_flight)


class RateGate:
    """Budget + minimum-spacing gate for one provider.

    Args:
        budget: Calls allowed per window (the provider's free-tier budget).
        reset_window: How long an exhausted budget stays exhausted.
        min_interval: Minimum seconds between two released requests.
        clock: Time source; defaults to the system clock.
        name: Owning provider name, for log records.
    """

    def __init__(
        self,
        budget: int,
        reset_window: timedelta,
        min_interval: float = 0.0,
        clock: Clock | None = None,
        name: str = "",
    ) -> None:
        if budget < 1:
            raise ValueError("budget must be at least 1")
        self.budget = budget
        self.reset_window = reset_window
        self.min_interval = max(0.0, min_interval)
        self.clock = clock or DEFAULT_CLOCK
        self.name = name
        self.state = RateGateState(remaining_calls=budget)
        self._lock = threading.Lock()

    @property
    def is_unlimited(self) -> bool:
        return self.budget >= UNLIMITED

    # ------------------------------------------------------------ queries

    def has_budget(self) -> bool:
        """True if a request could be released now (ignoring spacing)."""
        with self._lock:
            self._roll_over()
            return self.state.available > 0

    def snapshot(self) -> RateLimit:
        with self._lock:
            self._roll_over()
            return RateLimit(
                remaining=self.state.available,
                reset_at=self.state.reset_at,
            )

    # ----------------------------------------------------------- request path

    def acquire(self) -> bool:
        """Reserve a budget slot, then wait out the spacing interval.

        Returns False without waiting when no slot is left. Every True must
        be followed by exactly one ``record_success`` or ``release``.
        """
        with self._lock:
            self._roll_over()
            if self.state.available <= 0:
                return False
            self.state.in_flight += 1

            now = self.clock.monotonic()
            release_at = now
            last = self.state.last_request_at
            if last is not None and self.min_interval > 0:
                release_at = max(now, last + self.min_interval)
            self.state.last_request_at = release_at

        wait = release_at - now
        if wait > 0:
            logger.bind(provider=self.name).debug(
                f"Rate gate: waiting {wait:.2f}s for {self.name}"
            )
            self.clock.sleep(wait)
        return True

    def record_success(self) -> None:
        """Charge the reserved slot after an accepted response."""
        with self._lock:
            self.state.in_flight = max(0, self.state.in_flight - 1)
            self.state.remaining_calls = max(0, self.state.remaining_calls - 1)
            if self.state.remaining_calls == 0 and self.state.reset_at is None:
                self.state.reset_at = self.clock.now() + self.reset_window

    def release(self) -> None:
        """Return the reserved slot uncharged after a failed request."""
        with self._lock:
            self.state.in_flight = max(0, self.state.in_flight - 1)

    def throttle(self, retry_after: float | None = None) -> None:
        """Provider said we are throttled: close the gate until the window resets."""
        window = timedelta(seconds=retry_after) if retry_after else self.reset_window
        with self._lock:
            reset_at = self.clock.now() + window
            self.state.remaining_calls = 0
            self.state.reset_at = reset_at
        logger.bind(provider=self.name).warning(
            f"{self.name} throttled; budget closed until {reset_at.isoformat()}"
        )

    # ------------------------------------------------------------ internal

    def _roll_over(self) -> None:
        reset_at = self.state.reset_at
        if reset_at is not None and self.clock.now() >= reset_at:
            self.state.remaining_calls = self.budget
            self.state.reset_at = None
