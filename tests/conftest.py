"""Shared fixtures for marketquotes tests."""

from __future__ import annotations

import sys
import threading
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from marketquotes.clock import Clock
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.providers.mock import MockProvider

_NO_JSON = object()


class FakeClock(Clock):
    """Deterministic clock: ``sleep`` advances time instead of blocking.

    With ``advance_on_sleep=False`` sleeps are only recorded, so the waits
    computed by concurrent callers do not depend on thread scheduling.
    """

    def __init__(
        self,
        start: datetime = datetime(2024, 1, 15, 15, 0, tzinfo=timezone.utc),
        advance_on_sleep: bool = True,
    ) -> None:
        self.advance_on_sleep = advance_on_sleep
        self._mono = 1000.0
        self._now = start
        self._lock = threading.Lock()
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        with self._lock:
            return self._mono

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
        if self.advance_on_sleep:
            self.advance(seconds)

    def advance(self, seconds: float) -> None:
        if seconds <= 0:
            return
        with self._lock:
            self._mono += seconds
            self._now += timedelta(seconds=seconds)


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(
        self,
        payload: Any = _NO_JSON,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.payload = payload
        self.status_code = status_code
        self.headers = headers or {}

    def json(self) -> Any:
        if self.payload is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self.payload


def make_session(*responses: Any) -> MagicMock:
    """Session whose ``get`` returns (or raises) ``responses`` in order.

    A single response is returned for every call.
    """
    session = MagicMock()
    if len(responses) == 1 and not isinstance(responses[0], BaseException):
        session.get.return_value = responses[0]
    else:
        session.get.side_effect = list(responses)
    return session


def make_quote(symbol: str = "AAPL", source: str = "Test", **kwargs: Any) -> QuoteData:
    defaults: dict[str, Any] = dict(
        symbol=symbol,
        price=150.0,
        change=1.5,
        change_percent=1.0101,
        volume=50_000_000,
        high=151.0,
        low=148.0,
        open=149.0,
        previous_close=148.5,
        last_update=date(2024, 1, 15),
        source=source,
    )
    defaults.update(kwargs)
    return QuoteData(**defaults)


def make_bar(day: date, close: float = 150.0, **kwargs: Any) -> HistoricalBar:
    defaults: dict[str, Any] = dict(
        timestamp=datetime.combine(day, datetime.min.time()),
        open=149.0,
        high=151.0,
        low=148.0,
        close=close,
        volume=1_000_000,
    )
    defaults.update(kwargs)
    return HistoricalBar(**defaults)


def global_quote_payload(
    symbol: str = "AAPL",
    price: str = "150.0000",
    change: str = "1.5000",
    change_percent: str = "1.0101%",
    previous_close: str = "148.5000",
) -> dict[str, Any]:
    return {
        "Global Quote": {
            "01. symbol": symbol,
            "02. open": "149.0000",
            "03. high": "151.0000",
            "04. low": "148.0000",
            "05. price": price,
            "06. volume": "50000000",
            "07. latest trading day": "2024-01-15",
            "08. previous close": previous_close,
            "09. change": change,
            "10. change percent": change_percent,
        }
    }


def yahoo_chart_payload(
    price: float = 150.0,
    previous_close: float = 148.5,
    volume: int | None = 52_000_000,
    **meta: Any,
) -> dict[str, Any]:
    base_meta: dict[str, Any] = {
        "currency": "USD",
        "symbol": "AAPL",
        "regularMarketPrice": price,
        "previousClose": previous_close,
        "regularMarketVolume": volume,
        "regularMarketDayHigh": 151.25,
        "regularMarketDayLow": 148.1,
        "regularMarketOpen": 149.0,
        "regularMarketTime": 1705330800,  # 2024-01-15 15:00 UTC
    }
    base_meta.update(meta)
    return {"chart": {"result": [{"meta": base_meta}], "error": None}}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_provider(clock) -> MockProvider:
    return MockProvider(seed=42, clock=clock)


@pytest.fixture
def sample_bars() -> list[HistoricalBar]:
    """5 daily bars, newest first."""
    start = date(2024, 1, 15)
    return [
        make_bar(start - timedelta(days=i), close=150.0 - i * 0.5)
        for i in range(5)
    ]


@pytest.fixture(autouse=True)
def _no_provider_keys(monkeypatch):
    for name in (
        "ALPHA_VANTAGE_API_KEY",
        "NEXT_PUBLIC_ALPHA_VANTAGE_API_KEY",
        "FINNHUB_API_KEY",
        "MARKET_DATA_PROVIDERS",
        "USE_YAHOO_FINANCE_PRIMARY",
        "MARKET_DATA_MOCK_FALLBACK",
        "MARKET_DATA_CACHE",
    ):
        monkeypatch.delenv(name, raising=False)
