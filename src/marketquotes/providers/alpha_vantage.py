"""Alpha Vantage data provider.

Free tier: 5 requests per minute, one symbol per request. Quotes come from
``GLOBAL_QUOTE``; history from ``TIME_SERIES_INTRADAY`` (60min) or
``TIME_SERIES_DAILY``. Errors and throttling arrive inside HTTP 200 bodies.

API documentation: https://www.alphavantage.co/documentation/
"""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Any

from marketquotes.batch import BatchCoordinator
from marketquotes.clock import Clock
from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.normalize import (
    latest_bars,
    parse_day,
    parse_number,
    parse_percent,
    parse_timestamp,
    parse_volume,
)
from marketquotes.providers.base import INTRADAY_PERIOD, BaseQuoteProvider
from marketquotes.providers.http import JsonHttpClient
from marketquotes.rate_gate import RateGate

ALPHA_VANTAGE_BASE_URL = "https://www.alphavantage.co/query"

FREE_TIER_CALLS = 5
RESET_WINDOW = timedelta(seconds=60)
MIN_REQUEST_INTERVAL = 12.0  # 5 req/min
QUOTE_TIMEOUT = 15.0
HISTORY_TIMEOUT = 20.0

PLACEHOLDER_KEYS = {"", "DEMO"}


class AlphaVantageProvider(BaseQuoteProvider):
    """Fetch quotes and daily/intraday series from Alpha Vantage.

    Batches run sequentially: at 5 calls per minute even modest concurrency
    would exhaust the budget before the first response returned.
    """

    name = "Alpha Vantage"

    def __init__(
        self,
        api_key: str | None = None,
        clock: Clock | None = None,
        session: Any = None,
    ) -> None:
        super().__init__(
            gate=RateGate(
                budget=FREE_TIER_CALLS,
                reset_window=RESET_WINDOW,
                min_interval=MIN_REQUEST_INTERVAL,
                clock=clock,
                name=self.name,
            ),
            batch=BatchCoordinator.sequential(clock=clock),
            clock=clock,
        )
        self.api_key = (api_key or os.getenv("ALPHA_VANTAGE_API_KEY") or "").strip()
        self.http = JsonHttpClient(self.name, session=session)

    def is_configured(self) -> bool:
        return self.api_key.upper() not in PLACEHOLDER_KEYS

    # --------------------------------------------------------------- quotes

    def _fetch_quote(self, symbol: str) -> QuoteData:
        data = self._query(
            {"function": "GLOBAL_QUOTE", "symbol": symbol},
            timeout=QUOTE_TIMEOUT,
        )
        quote = data.get("Global Quote")
        if not isinstance(quote, dict) or not quote.get("05. price"):
            raise MarketDataError(
                f"No Global Quote for {symbol}",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        return self._parse_quote(symbol, quote)

    def _parse_quote(self, symbol: str, q: dict[str, Any]) -> QuoteData:
        return QuoteData(
            symbol=str(q.get("01. symbol") or symbol).upper(),
            price=parse_number(q.get("05. price"), "05. price"),
            change=parse_number(q.get("09. change"), "09. change"),
            change_percent=parse_percent(q.get("10. change percent"), "10. change percent"),
            volume=parse_volume(q.get("06. volume"), "06. volume"),
            high=parse_number(q.get("03. high"), "03. high"),
            low=parse_number(q.get("04. low"), "04. low"),
            open=parse_number(q.get("02. open"), "02. open"),
            previous_close=parse_number(q.get("08. previous close"), "08. previous close"),
            last_update=parse_day(q.get("07. latest trading day"), "07. latest trading day"),
            source=self.name,
            is_real_data=True,
        )

    # ----------------------------------------------------------- historical

    def _fetch_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        if period == INTRADAY_PERIOD:
            params = {"function": "TIME_SERIES_INTRADAY", "symbol": symbol, "interval": "60min"}
            series_key = "Time Series (60min)"
        else:
            params = {"function": "TIME_SERIES_DAILY", "symbol": symbol}
            series_key = "Time Series (Daily)"

        data = self._query(params, timeout=HISTORY_TIMEOUT)
        series = data.get(series_key)
        if not isinstance(series, dict):
            return []

        bars = [self._parse_bar(stamp, row) for stamp, row in series.items()]
        return latest_bars(bars)

    @staticmethod
    def _parse_bar(stamp: str, row: dict[str, Any]) -> HistoricalBar:
        return HistoricalBar(
            timestamp=parse_timestamp(stamp, "timestamp"),
            open=parse_number(row.get("1. open"), "1. open"),
            high=parse_number(row.get("2. high"), "2. high"),
            low=parse_number(row.get("3. low"), "3. low"),
            close=parse_number(row.get("4. close"), "4. close"),
            volume=parse_volume(row.get("5. volume"), "5. volume"),
        )

    # ------------------------------------------------------------ internals

    def _query(self, params: dict[str, Any], timeout: float) -> dict[str, Any]:
        data = self.http.get_json(
            ALPHA_VANTAGE_BASE_URL,
            params={**params, "apikey": self.api_key},
            timeout=timeout,
        )
        if not isinstance(data, dict):
            raise MarketDataError(
                "Alpha Vantage returned a non-object body",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        if "Error Message" in data:
            raise MarketDataError(
                f"Alpha Vantage API error: {data['Error Message']}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            )
        if "Note" in data:
            raise MarketDataError(
                f"Alpha Vantage rate limit: {data['Note']}",
                code=MarketDataErrorCode.RATE_LIMITED,
            )
        if "Information" in data:
            raise MarketDataError(
                f"Alpha Vantage info: {data['Information']}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            )
        return data
