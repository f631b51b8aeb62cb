"""pandas conversions for normalized quotes and bars."""

from __future__ import annotations

import pandas as pd

from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData

BAR_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]
QUOTE_COLUMNS = [
    "symbol",
    "price",
    "change",
    "change_percent",
    "volume",
    "high",
    "low",
    "open",
    "previous_close",
    "last_update",
    "source",
    "is_real_data",
    "currency",
    "market_cap",
]


def bars_to_frame(bars: list[HistoricalBar]) -> pd.DataFrame:
    """One row per bar indexed by timestamp, order preserved (newest first)."""
    records = [
        {
            "timestamp": b.timestamp,
            "open": b.open,
            "high": b.high,
            "low": b.low,
            "close": b.close,
            "volume": b.volume,
        }
        for b in bars
    ]
    df = pd.DataFrame(records, columns=BAR_COLUMNS)
    return df.set_index("timestamp")


def quotes_to_frame(quotes: dict[str, QuoteData] | list[QuoteData]) -> pd.DataFrame:
    """One row per quote indexed by symbol."""
    items = list(quotes.values()) if isinstance(quotes, dict) else list(quotes)
    records = [{col: getattr(q, col) for col in QUOTE_COLUMNS} for q in items]
    df = pd.DataFrame(records, columns=QUOTE_COLUMNS)
    return df.set_index("symbol")
