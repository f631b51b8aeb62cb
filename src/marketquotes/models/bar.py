"""Historical bar (OHLCV) data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class HistoricalBar:
    """Single price bar of a historical series.

    Attributes:
        timestamp: Bar timestamp. Daily bars sit at midnight; intraday bars
            carry the provider's bar time.
        open: Opening price.
        high: High price.
        low: Low price.
        close: Closing price.
        volume: Trading volume.
    """

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int

    @property
    def date(self) -> date:
        """Calendar date of the bar."""
        return self.timestamp.date()

    def to_dict(self) -> dict[str, Any]:
        is_daily = self.timestamp.time() == datetime.min.time()
        return {
            "date": self.date.isoformat() if is_daily else self.timestamp.isoformat(sep=" "),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
