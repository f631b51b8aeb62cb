"""Batch fetch strategies for a single provider."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from loguru import logger

from marketquotes.clock import DEFAULT_CLOCK, Clock
from marketquotes.models.quote import QuoteData

FetchOne = Callable[[str], Optional[QuoteData]]


class BatchCoordinator:
    """Drive many single-symbol fetches against one provider.

    Two strategies:

    * **sequential** (``chunk_size=1``): one request at a time, each paced by
      the provider's rate gate. For providers whose per-minute budget would
      be gone before the first concurrent response returned.
    * **chunked-concurrent** (``chunk_size > 1``): symbols are split into
      chunks; every request in a chunk runs concurrently, all outcomes are
      collected, and ``inter_chunk_delay`` seconds pass before the next
      chunk starts.

    ``fetch_one`` must follow the provider contract (return None instead of
    raising); anything it raises anyway is logged and the symbol omitted.
    """

    def __init__(
        self,
        chunk_size: int = 1,
        inter_chunk_delay: float = 0.0,
        clock: Clock | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.chunk_size = chunk_size
        self.inter_chunk_delay = max(0.0, inter_chunk_delay)
        self.clock = clock or DEFAULT_CLOCK

    @classmethod
    def sequential(cls, clock: Clock | None = None) -> "BatchCoordinator":
        return cls(chunk_size=1, clock=clock)

    @classmethod
    def chunked(
        cls,
        chunk_size: int = 5,
        inter_chunk_delay: float = 1.0,
        clock: Clock | None = None,
    ) -> "BatchCoordinator":
        return cls(chunk_size=chunk_size, inter_chunk_delay=inter_chunk_delay, clock=clock)

    @property
    def is_sequential(self) -> bool:
        return self.chunk_size == 1

    def fetch(self, symbols: list[str], fetch_one: FetchOne) -> dict[str, QuoteData]:
        """Fetch every symbol; the result holds exactly the ones that succeeded."""
        if self.is_sequential:
            return self._fetch_sequential(symbols, fetch_one)
        return self._fetch_chunked(symbols, fetch_one)

    # ------------------------------------------------------------ internal

    def _fetch_sequential(self, symbols: list[str], fetch_one: FetchOne) -> dict[str, QuoteData]:
        results: dict[str, QuoteData] = {}
        for symbol in symbols:
            quote = self._settle(symbol, fetch_one)
            if quote is not None:
                results[symbol] = quote
        return results

    def _fetch_chunked(self, symbols: list[str], fetch_one: FetchOne) -> dict[str, QuoteData]:
        results: dict[str, QuoteData] = {}
        chunks = [
            symbols[i:i + self.chunk_size]
            for i in range(0, len(symbols), self.chunk_size)
        ]
        with ThreadPoolExecutor(max_workers=self.chunk_size) as pool:
            for index, chunk in enumerate(chunks):
                futures = [(s, pool.submit(self._settle, s, fetch_one)) for s in chunk]
                for symbol, future in futures:
                    quote = future.result()
                    if quote is not None:
                        results[symbol] = quote
                if index < len(chunks) - 1 and self.inter_chunk_delay > 0:
                    self.clock.sleep(self.inter_chunk_delay)
        return results

    @staticmethod
    def _settle(symbol: str, fetch_one: FetchOne) -> QuoteData | None:
        try:
            return fetch_one(symbol)
        except Exception as exc:
            logger.bind(symbol=symbol).opt(exception=exc).warning(
                f"Batch fetch for {symbol} raised; omitting it"
            )
            return None
