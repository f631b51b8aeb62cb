"""Finnhub data provider (REST API, token sent in ``X-Finnhub-Token``).

Free tier: 60 calls per minute. The quote endpoint reports price, change,
percent, and the day range but no volume.

API documentation: https://finnhub.io/docs/api
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
    epoch_to_datetime,
    latest_bars,
    parse_number,
    parse_volume,
    round2,
)
from marketquotes.providers.base import INTRADAY_PERIOD, BaseQuoteProvider
from marketquotes.providers.http import JsonHttpClient
from marketquotes.rate_gate import RateGate

FINNHUB_BASE_URL = "https://finnhub.io/api/v1"

FREE_TIER_CALLS = 60
RESET_WINDOW = timedelta(seconds=60)
CHUNK_SIZE = 5
INTER_CHUNK_DELAY = 1.0
QUOTE_TIMEOUT = 10.0
HISTORY_TIMEOUT = 15.0

# (resolution, lookback) per period; lookbacks cover weekends and holidays
_CANDLE_PARAMS = {
    INTRADAY_PERIOD: ("60", timedelta(days=5)),
    "daily": ("D", timedelta(days=60)),
}


class FinnhubProvider(BaseQuoteProvider):
    """Fetch quotes and candles from Finnhub.io.

    Batches run chunked-concurrent like Yahoo; the 60/min budget is the
    binding limit, enforced by the gate.
    """

    name = "Finnhub"

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
        self.api_key = (api_key or os.getenv("FINNHUB_API_KEY") or "").strip()
        self.http = JsonHttpClient(
            self.name, headers={"X-Finnhub-Token": self.api_key}, session=session,
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    # --------------------------------------------------------------- quotes

    def _fetch_quote(self, symbol: str) -> QuoteData:
        data = self._get("/quote", {"symbol": symbol}, timeout=QUOTE_TIMEOUT)
        # Finnhub answers unknown symbols with an all-zero quote
        if not data.get("c"):
            raise MarketDataError(
                f"No Finnhub quote for {symbol}",
                code=MarketDataErrorCode.NOT_FOUND,
            )

        price = parse_number(data.get("c"), "c")
        if data.get("t"):
            last_update = epoch_to_datetime(data["t"], "t").date()
        else:
            last_update = self.clock.today()

        return QuoteData(
            symbol=symbol,
            price=round2(price),
            change=round2(parse_number(data.get("d"), "d")),
            change_percent=round2(parse_number(data.get("dp"), "dp")),
            volume=0,
            high=parse_number(data.get("h") or price, "h"),
            low=parse_number(data.get("l") or price, "l"),
            open=parse_number(data.get("o") or price, "o"),
            previous_close=round2(parse_number(data.get("pc"), "pc")),
            last_update=last_update,
            source=self.name,
            is_real_data=True,
        )

    # ----------------------------------------------------------- historical

    def _fetch_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        resolution, lookback = _CANDLE_PARAMS[
            INTRADAY_PERIOD if period == INTRADAY_PERIOD else "daily"
        ]
        end = self.clock.now()
        start = end - lookback
        data = self._get(
            "/stock/candle",
            {
                "symbol": symbol,
                "resolution": resolution,
                "from": int(start.timestamp()),
                "to": int(end.timestamp()),
            },
            timeout=HISTORY_TIMEOUT,
        )
        if data.get("s") != "ok":
            return []

        bars: list[HistoricalBar] = []
        for i, stamp in enumerate(data.get("t") or []):
            ts = epoch_to_datetime(stamp, "t")
            if resolution == "D":
                ts = ts.replace(hour=0, minute=0, second=0, microsecond=0)
            bars.append(HistoricalBar(
                timestamp=ts,
                open=parse_number(_at(data, "o", i), "o"),
                high=parse_number(_at(data, "h", i), "h"),
                low=parse_number(_at(data, "l", i), "l"),
                close=parse_number(_at(data, "c", i), "c"),
                volume=parse_volume(_at(data, "v", i), "v"),
            ))
        return latest_bars(bars)

    # ------------------------------------------------------------ internals

    def _get(self, path: str, params: dict[str, Any], timeout: float) -> dict[str, Any]:
        data = self.http.get_json(FINNHUB_BASE_URL + path, params=params, timeout=timeout)
        if not isinstance(data, dict):
            raise MarketDataError(
                "Finnhub returned a non-object body",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            )
        if data.get("error"):
            raise MarketDataError(
                f"Finnhub API error: {data['error']}",
                code=MarketDataErrorCode.PROVIDER_ERROR,
            )
        return data


def _at(data: dict[str, Any], key: str, index: int) -> Any:
    values = data.get(key)
    if isinstance(values, list) and index < len(values):
        return values[index]
    return None
