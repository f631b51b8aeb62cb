"""Cache backends for the aggregator — Memory (TTL + LRU) and a no-op."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any

from marketquotes.clock import DEFAULT_CLOCK, Clock
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData


class CacheBackend(ABC):
    """Abstract cache interface."""

    @abstractmethod
    def get_quote(self, symbol: str) -> QuoteData | None:
        """Return a fresh cached quote, or None on miss."""
        ...

    @abstractmethod
    def store_quote(self, quote: QuoteData) -> None:
        ...

    @abstractmethod
    def get_history(self, symbol: str, period: str) -> list[HistoricalBar] | None:
        """Return a fresh cached series, or None on miss."""
        ...

    @abstractmethod
    def store_history(self, symbol: str, period: str, bars: list[HistoricalBar]) -> None:
        ...

    @abstractmethod
    def clear(self, symbol: str) -> None:
        ...

    @abstractmethod
    def clear_all(self) -> None:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class NoCache(CacheBackend):
    """No-op cache — always misses."""

    def get_quote(self, symbol):  # type: ignore[override]
        return None

    def store_quote(self, quote):  # type: ignore[override]
        pass

    def get_history(self, symbol, period):  # type: ignore[override]
        return None

    def store_history(self, symbol, period, bars):  # type: ignore[override]
        pass

    def clear(self, symbol):  # type: ignore[override]
        pass

    def clear_all(self):
        pass

    def __len__(self) -> int:
        return 0


class MemoryCache(CacheBackend):
    """In-memory TTL cache for quotes and historical series.

    Quotes and series carry separate TTLs. Uses LRU eviction when
    ``max_entries`` is exceeded.
    """

    def __init__(
        self,
        quote_ttl_seconds: int = 300,
        history_ttl_seconds: int = 3600,
        max_entries: int = 1000,
        clock: Clock | None = None,
    ) -> None:
        self.quote_ttl = quote_ttl_seconds
        self.history_ttl = history_ttl_seconds
        self.max_entries = max_entries
        self.clock = clock or DEFAULT_CLOCK
        # key -> (stored_at, ttl, value)
        self._store: OrderedDict[str, tuple[float, float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def _quote_key(symbol: str) -> str:
        return f"{symbol.upper()}|quote"

    @staticmethod
    def _history_key(symbol: str, period: str) -> str:
        return f"{symbol.upper()}|history|{period}"

    def _get(self, key: str) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            stored_at, ttl, value = entry
            if self.clock.monotonic() - stored_at > ttl:
                del self._store[key]
                return None
            self._store.move_to_end(key)  # refresh LRU position
            return value

    def _put(self, key: str, ttl: float, value: Any) -> None:
        with self._lock:
            self._store[key] = (self.clock.monotonic(), ttl, value)
            self._store.move_to_end(key)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def get_quote(self, symbol: str) -> QuoteData | None:
        return self._get(self._quote_key(symbol))

    def store_quote(self, quote: QuoteData) -> None:
        self._put(self._quote_key(quote.symbol), self.quote_ttl, quote)

    def get_history(self, symbol: str, period: str) -> list[HistoricalBar] | None:
        bars = self._get(self._history_key(symbol, period))
        return list(bars) if bars is not None else None

    def store_history(self, symbol: str, period: str, bars: list[HistoricalBar]) -> None:
        if not bars:
            return
        self._put(self._history_key(symbol, period), self.history_ttl, list(bars))

    def clear(self, symbol: str) -> None:
        prefix = f"{symbol.upper()}|"
        with self._lock:
            for k in [k for k in self._store if k.startswith(prefix)]:
                del self._store[k]

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
