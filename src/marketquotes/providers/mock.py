"""Mock provider for demos, tests, and CI — no API keys required."""

from __future__ import annotations

import random
from collections import deque
from datetime import datetime, timedelta

from marketquotes.batch import BatchCoordinator
from marketquotes.clock import Clock
from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.normalize import HISTORY_WINDOW, latest_bars, round2
from marketquotes.providers.base import INTRADAY_PERIOD, BaseQuoteProvider
from marketquotes.rate_gate import UNLIMITED, RateGate

_BASE_PRICES: dict[str, float] = {
    "AAPL": 189.50,
    "MSFT": 411.25,
    "GOOGL": 141.80,
    "AMZN": 151.94,
    "TSLA": 248.50,
    "NVDA": 875.30,
    "META": 484.00,
    "NFLX": 490.00,
    "SPY": 467.50,
    "QQQ": 401.25,
    "V": 285.00,
    "JPM": 181.25,
    "JNJ": 156.75,
    "WMT": 162.50,
    "PG": 145.30,
    "UNH": 524.75,
}

# Most recent fetches kept in ``MockProvider.calls``.
CALL_LOG_SIZE = 1000


class MockProvider(BaseQuoteProvider):
    """In-memory provider returning configurable or synthetic data.

    Use ``set_quote`` / ``set_history`` to pre-load data and ``fail_symbol``
    to make a symbol fail; everything else gets plausible synthetic values
    flagged ``is_real_data=False``. ``calls`` holds the symbols of the most
    recent fetches, oldest first.
    """

    name = "Mock Data"

    def __init__(
        self,
        seed: int | None = None,
        clock: Clock | None = None,
        call_log_size: int = CALL_LOG_SIZE,
    ) -> None:
        super().__init__(
            gate=RateGate(
                budget=UNLIMITED,
                reset_window=timedelta(0),
                clock=clock,
                name=self.name,
            ),
            batch=BatchCoordinator.sequential(clock=clock),
            clock=clock,
        )
        self._rng = random.Random(seed)
        self._quotes: dict[str, QuoteData] = {}
        self._history: dict[str, list[HistoricalBar]] = {}
        self._failing: set[str] = set()
        self.calls: deque[str] = deque(maxlen=call_log_size)

    # --- Pre-load helpers ---

    def set_quote(self, symbol: str, quote: QuoteData) -> None:
        self._quotes[symbol.upper()] = quote

    def set_history(self, symbol: str, bars: list[HistoricalBar]) -> None:
        self._history[symbol.upper()] = bars

    def fail_symbol(self, symbol: str) -> None:
        self._failing.add(symbol.upper())

    # --- Provider implementation ---

    def _fetch_quote(self, symbol: str) -> QuoteData:
        self.calls.append(symbol)
        if symbol in self._failing:
            raise MarketDataError(f"Mock failure for {symbol}", code=MarketDataErrorCode.NO_DATA)
        if symbol in self._quotes:
            return self._quotes[symbol]
        return self._synthetic_quote(symbol)

    def _fetch_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        self.calls.append(symbol)
        if symbol in self._failing:
            raise MarketDataError(f"Mock failure for {symbol}", code=MarketDataErrorCode.NO_DATA)
        if symbol in self._history:
            return latest_bars(self._history[symbol])
        return self._synthetic_history(symbol, period)

    # --- Synthetic data generation ---

    @staticmethod
    def base_price(symbol: str) -> float:
        return _BASE_PRICES.get(symbol, 75.0 + ord(symbol[0]) % 150)

    def _synthetic_quote(self, symbol: str) -> QuoteData:
        base = self.base_price(symbol)
        volatility = self._volatility(self.clock.now().hour)

        change = round2((self._rng.random() - 0.5) * volatility * base * 0.03)
        price = max(base + change, 1.0)
        open_ = base * (0.99 + self._rng.random() * 0.02)
        high = max(price, open_) * (1 + self._rng.random() * 0.015)
        low = min(price, open_) * (1 - self._rng.random() * 0.015)

        return QuoteData(
            symbol=symbol,
            price=round2(price),
            change=change,
            change_percent=round2(change / base * 100),
            volume=self._rng.randint(500_000, 2_500_000),
            high=round2(high),
            low=round2(low),
            open=round2(open_),
            previous_close=round2(base),
            last_update=self.clock.today(),
            source=self.name,
            is_real_data=False,
        )

    def _synthetic_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        """Random walk ending today: hourly bars for ``1d``, weekday dailies otherwise."""
        today = self.clock.today()
        if period == INTRADAY_PERIOD:
            start = datetime.combine(today, datetime.min.time()).replace(hour=9)
            stamps = [start + timedelta(hours=h) for h in range(8)]
        else:
            stamps = []
            day = today
            while len(stamps) < HISTORY_WINDOW:
                if day.weekday() < 5:
                    stamps.append(datetime.combine(day, datetime.min.time()))
                day -= timedelta(days=1)
            stamps.reverse()

        bars: list[HistoricalBar] = []
        close = self.base_price(symbol)
        for ts in stamps:
            o = close
            c = max(o * (1 + (self._rng.random() - 0.5) * 0.02), 1.0)
            bars.append(HistoricalBar(
                timestamp=ts,
                open=round2(o),
                high=round2(max(o, c) * 1.005),
                low=round2(min(o, c) * 0.995),
                close=round2(c),
                volume=self._rng.randint(500_000, 2_500_000),
            ))
            close = c
        return latest_bars(bars)

    @staticmethod
    def _volatility(hour: int) -> float:
        if 9 <= hour <= 10:  # open
            return 1.5
        if 15 <= hour <= 16:  # close
            return 1.3
        if 11 <= hour <= 14:
            return 0.8
        return 1.0
