"""Abstract base class for quote providers.

The public methods here are the provider contract. They never raise:
subclasses implement ``_fetch_quote`` / ``_fetch_history`` and signal any
failure by raising ``MarketDataError``; the boundary below logs it and turns
it into ``None``, an omitted symbol, or an empty series.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, TypeVar

from loguru import logger

from marketquotes.batch import BatchCoordinator
from marketquotes.clock import DEFAULT_CLOCK, Clock
from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.models.rate_limit import RateLimit
from marketquotes.normalize import normalize_symbol, unique_symbols
from marketquotes.quality import validate_bars, validate_quote
from marketquotes.rate_gate import RateGate

T = TypeVar("T")

INTRADAY_PERIOD = "1d"
DEFAULT_PERIOD = "1mo"


class BaseQuoteProvider(ABC):
    """Abstract base for all quote providers.

    Each instance owns one ``RateGate`` and one ``BatchCoordinator``; both are
    process-local and touched only through this class's request path.

    Class attributes:
        name: Stable display name, reported as ``QuoteData.source``.
        QUOTE_TTL_SECONDS: Advisory freshness of a quote response.
        HISTORY_TTL_SECONDS: Advisory freshness of a historical response.
    """

    name: str = ""
    QUOTE_TTL_SECONDS: int = 300
    HISTORY_TTL_SECONDS: int = 3600

    def __init__(
        self,
        gate: RateGate,
        batch: BatchCoordinator,
        clock: Clock | None = None,
    ) -> None:
        self.gate = gate
        self.batch = batch
        self.clock = clock or DEFAULT_CLOCK

    # --- Contract ---

    def is_configured(self) -> bool:
        """True if credentials/config needed to operate are present."""
        return True

    def is_available(self) -> bool:
        """Configured and the rate gate still has budget."""
        return self.is_configured() and self.gate.has_budget()

    def get_rate_limit(self) -> RateLimit:
        return self.gate.snapshot()

    def get_quote(self, symbol: str) -> QuoteData | None:
        """Fetch one quote, or None on any failure."""
        key = normalize_symbol(symbol)
        if not key:
            return None
        return self._guarded("quote", key, lambda: self._checked_quote(key))

    def get_batch_quotes(self, symbols: list[str]) -> dict[str, QuoteData]:
        """Fetch many quotes; failed symbols are simply absent."""
        keys = unique_symbols(symbols)
        if not keys or not self.is_available():
            return {}
        return self.batch.fetch(keys, self.get_quote)

    def get_historical_data(
        self,
        symbol: str,
        period: str = DEFAULT_PERIOD,
    ) -> list[HistoricalBar]:
        """Fetch up to 30 most recent bars, newest first; [] on any failure.

        ``period="1d"`` selects the intraday series, anything else the daily.
        """
        key = normalize_symbol(symbol)
        if not key:
            return []
        bars = self._guarded(
            "historical", key, lambda: self._checked_history(key, period),
        )
        return bars or []

    # --- Provider-specific ---

    @abstractmethod
    def _fetch_quote(self, symbol: str) -> QuoteData:
        """Fetch and normalize a quote; raise MarketDataError on failure."""
        ...

    @abstractmethod
    def _fetch_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        """Fetch and normalize a series; raise MarketDataError on failure."""
        ...

    # --- Boundary ---

    def _checked_quote(self, symbol: str) -> QuoteData:
        quote = self._fetch_quote(symbol)
        result = validate_quote(quote)
        if not result.passed:
            raise MarketDataError(
                f"Quote failed validation: {result.summary()}",
                code=MarketDataErrorCode.VALIDATION_FAILED,
            )
        return quote

    def _checked_history(self, symbol: str, period: str) -> list[HistoricalBar]:
        bars = self._fetch_history(symbol, period)
        result = validate_bars(bars)
        if not result.passed:
            logger.bind(provider=self.name, symbol=symbol).warning(
                f"{self.name} series for {symbol} has quality issues: {result.summary()}"
            )
        return bars

    def _guarded(self, what: str, symbol: str, fetch: Callable[[], T]) -> T | None:
        log = logger.bind(provider=self.name, symbol=symbol)
        if not self.is_configured():
            log.debug(f"{self.name} not configured; skipping {what} for {symbol}")
            return None
        if not self.gate.acquire():
            log.debug(f"{self.name} out of budget; skipping {what} for {symbol}")
            return None

        try:
            result = fetch()
        except MarketDataError as exc:
            self.gate.release()
            if exc.code is MarketDataErrorCode.RATE_LIMITED:
                self.gate.throttle(exc.retry_after)
            log.warning(f"{self.name} {what} failed for {symbol} [{exc.code.value}]: {exc}")
            return None
        except Exception as exc:
            self.gate.release()
            log.opt(exception=exc).error(
                f"{self.name} {what} failed unexpectedly for {symbol}: {exc}"
            )
            return None

        self.gate.record_success()
        return result
