"""Defensive parsing helpers shared by the provider normalizers.

Providers hand us strings ("150.0000", "1.01%"), numbers, or nothing at all.
A missing or unparsable required field is a malformed response, never zero.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Iterable

from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.models.bar import HistoricalBar

HISTORY_WINDOW = 30


def normalize_symbol(symbol: str) -> str:
    """Canonical form of a ticker: stripped and uppercased."""
    return (symbol or "").strip().upper()


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Normalize, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for s in symbols:
        key = normalize_symbol(s)
        if key:
            seen.setdefault(key, None)
    return list(seen)


def _malformed(field: str, value: Any) -> MarketDataError:
    return MarketDataError(
        f"Unparsable {field!r}: {value!r}",
        code=MarketDataErrorCode.MALFORMED_RESPONSE,
    )


def parse_number(value: Any, field: str) -> float:
    """Parse a required numeric field.

    Raises:
        MarketDataError: MALFORMED_RESPONSE if missing, blank, or not finite.
    """
    if value is None or isinstance(value, bool):
        raise _malformed(field, value)
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            raise _malformed(field, value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise _malformed(field, value) from None
    if not math.isfinite(number):
        raise _malformed(field, value)
    return number


def parse_percent(value: Any, field: str) -> float:
    """Parse a percent that may arrive as ``"1.23%"``."""
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    return parse_number(value, field)


def parse_volume(value: Any, field: str) -> int:
    """Parse a required non-negative integer volume."""
    number = parse_number(value, field)
    if number < 0:
        raise _malformed(field, value)
    return int(number)


def parse_day(value: Any, field: str) -> date:
    """Parse a ``YYYY-MM-DD`` trading day."""
    if not isinstance(value, str) or not value.strip():
        raise _malformed(field, value)
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise _malformed(field, value) from None


def parse_timestamp(value: Any, field: str) -> datetime:
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM-DD HH:MM:SS`` (naive, provider local)."""
    if not isinstance(value, str) or not value.strip():
        raise _malformed(field, value)
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        raise _malformed(field, value) from None


def epoch_to_datetime(value: Any, field: str) -> datetime:
    """Convert epoch seconds to a naive UTC datetime."""
    seconds = parse_number(value, field)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def round2(value: float) -> float:
    """Display rounding used by providers that present rounded figures."""
    return round(value, 2)


def latest_bars(bars: Iterable[HistoricalBar], limit: int = HISTORY_WINDOW) -> list[HistoricalBar]:
    """Most recent ``limit`` bars, newest first."""
    return sorted(bars, key=lambda b: b.timestamp, reverse=True)[:limit]
