"""Normalized quote data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class QuoteData:
    """Point-in-time quote, identical in shape across every provider.

    Attributes:
        symbol: Uppercase ticker symbol.
        price: Last traded price.
        change: Change from the previous close, in currency units.
        change_percent: Change from the previous close, in percent (1.01 == 1.01%).
        volume: Shares traded in the current session.
        high: Session high.
        low: Session low.
        open: Session open.
        previous_close: Previous session close.
        last_update: Trading day the quote belongs to.
        source: Display name of the provider that produced it.
        is_real_data: False for synthetic/demo quotes.
        currency: ISO currency code, when the provider reports one.
        market_cap: Market capitalization, when the provider reports one.
    """

    symbol: str
    price: float
    change: float
    change_percent: float
    volume: int
    high: float
    low: float
    open: float
    previous_close: float
    last_update: date
    source: str
    is_real_data: bool = True
    currency: str | None = None
    market_cap: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Camel-cased JSON-ready mapping, ``lastUpdate`` as ``YYYY-MM-DD``."""
        data: dict[str, Any] = {
            "symbol": self.symbol,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
            "high": self.high,
            "low": self.low,
            "open": self.open,
            "previousClose": self.previous_close,
            "lastUpdate": self.last_update.isoformat(),
            "source": self.source,
            "isRealData": self.is_real_data,
        }
        if self.currency is not None:
            data["currency"] = self.currency
        if self.market_cap is not None:
            data["marketCap"] = self.market_cap
        return data
