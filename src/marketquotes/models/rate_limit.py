"""Rate-limit snapshot model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RateLimit:
    """Read-only view of a provider's call budget.

    Attributes:
        remaining: Calls left in the current window.
        reset_at: When the budget refills, or None if no reset is pending.
    """

    remaining: int
    reset_at: datetime | None = None
