"""Yahoo Finance data provider (public chart endpoint, no API key).

Generally available but unreliable; requests without a browser-like
``User-Agent`` get blocked. Figures are rounded to cents for display.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from marketquotes.batch import BatchCoordinator
from marketquotes.clock import Clock
from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.normalize import (
    epoch_to_datetime,
    latest_bars,
    parse_number,
    parse_volume,
    round2,
)
from marketquotes.providers.base import INTRADAY_PERIOD, BaseQuoteProvider
from marketquotes.providers.http import JsonHttpClient
from marketquotes.rate_gate import RateGate

YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; marketquotes/0.1)"

CALL_BUDGET = 100
RESET_WINDOW = timedelta(seconds=60)
CHUNK_SIZE = 5
INTER_CHUNK_DELAY = 1.0
QUOTE_TIMEOUT = 10.0
HISTORY_TIMEOUT = 15.0

_HISTORY_PARAMS = {
    INTRADAY_PERIOD: {"range": "1d", "interval": "60m"},
    # 3 months of dailies comfortably covers the 30-bar window
    "daily": {"range": "3mo", "interval": "1d"},
}


class YahooFinanceProvider(BaseQuoteProvider):
    """Fetch quotes and series from Yahoo's v8 chart API.

    Batches run chunked-concurrent: 5 requests in flight, 1s between chunks.
    """

    name = "Yahoo Finance"

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Clock | None = None,
        session: Any = None,
    ) -> None:
        super().__init__(
            gate=RateGate(
                budget=CALL_BUDGET,
                reset_window=RESET_WINDOW,
                clock=clock,
                name=self.name,
            ),
            batch=BatchCoordinator.chunked(
                chunk_size=CHUNK_SIZE,
                inter_chunk_delay=INTER_CHUNK_DELAY,
                clock=clock,
            ),
            clock=clock,
        )
        self.http = JsonHttpClient(
            self.name, headers={"User-Agent": user_agent}, session=session,
        )

    # --------------------------------------------------------------- quotes

    def _fetch_quote(self, symbol: str) -> QuoteData:
        result = self._chart(symbol, params=None, timeout=QUOTE_TIMEOUT)
        meta = result.get("meta")
        if not isinstance(meta, dict) or not meta.get("regularMarketPrice"):
            raise MarketDataError(
                f"No regularMarketPrice for {symbol}",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        return self._parse_meta(symbol, meta)

    def _parse_meta(self, symbol: str, meta: dict[str, Any]) -> QuoteData:
        price = parse_number(meta.get("regularMarketPrice"), "regularMarketPrice")
        prev_raw = meta.get("previousClose", meta.get("chartPreviousClose"))
        previous_close = parse_number(prev_raw, "previousClose")
        if previous_close <= 0:
            raise MarketDataError(
                f"Non-positive previous close for {symbol}",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        change = price - previous_close
        change_percent = change / previous_close * 100

        if meta.get("regularMarketTime") is not None:
            last_update = epoch_to_datetime(meta["regularMarketTime"], "regularMarketTime").date()
        else:
            last_update = self.clock.today()

        return QuoteData(
            symbol=symbol,
            price=round2(price),
            change=round2(change),
            change_percent=round2(change_percent),
            volume=parse_volume(meta.get("regularMarketVolume"), "regularMarketVolume"),
            high=self._or_price(meta, "regularMarketDayHigh", price),
            low=self._or_price(meta, "regularMarketDayLow", price),
            open=self._or_price(meta, "regularMarketOpen", price),
            previous_close=round2(previous_close),
            last_update=last_update,
            source=self.name,
            is_real_data=True,
            currency=meta.get("currency"),
        )

    @staticmethod
    def _or_price(meta: dict[str, Any], key: str, price: float) -> float:
        # Yahoo omits day range fields outside trading hours for some symbols.
        if not meta.get(key):
            return price
        return parse_number(meta[key], key)

    # ----------------------------------------------------------- historical

    def _fetch_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        params = _HISTORY_PARAMS[INTRADAY_PERIOD if period == INTRADAY_PERIOD else "daily"]
        result = self._chart(symbol, params=params, timeout=HISTORY_TIMEOUT)

        stamps = result.get("timestamp") or []
        quotes = (result.get("indicators") or {}).get("quote") or [{}]
        ohlcv = quotes[0] if isinstance(quotes[0], dict) else {}

        bars: list[HistoricalBar] = []
        for i, stamp in enumerate(stamps):
            row = {k: _at(ohlcv.get(k), i) for k in ("open", "high", "low", "close", "volume")}
            # Yahoo emits null rows for halted or not-yet-traded intervals
            if all(v is None for v in row.values()):
                continue
            ts = epoch_to_datetime(stamp, "timestamp")
            if period != INTRADAY_PERIOD:
                ts = ts.replace(hour=0, minute=0, second=0, microsecond=0)
            bars.append(HistoricalBar(
                timestamp=ts,
                open=parse_number(row["open"], "open"),
                high=parse_number(row["high"], "high"),
                low=parse_number(row["low"], "low"),
                close=parse_number(row["close"], "close"),
                volume=parse_volume(row["volume"], "volume"),
            ))
        return latest_bars(bars)

    # ------------------------------------------------------------ internals

    def _chart(
        self,
        symbol: str,
        params: dict[str, str] | None,
        timeout: float,
    ) -> dict[str, Any]:
        data = self.http.get_json(
            YAHOO_CHART_URL.format(symbol=symbol), params=params, timeout=timeout,
        )
        chart = data.get("chart") if isinstance(data, dict) else None
        if not isinstance(chart, dict):
            raise MarketDataError(
                "Yahoo Finance returned no chart object",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        error = chart.get("error")
        if error:
            description = error.get("description") if isinstance(error, dict) else error
            raise MarketDataError(
                f"Yahoo Finance error: {description}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            )
        results = chart.get("result") or []
        if not results or not isinstance(results[0], dict):
            raise MarketDataError(
                f"Yahoo Finance returned no result for {symbol}",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        return results[0]


def _at(values: Any, index: int) -> Any:
    if isinstance(values, list) and index < len(values):
        return values[index]
    return None
