"""MarketDataAggregator — cache + ordered provider failover."""

from __future__ import annotations

from typing import Any

from loguru import logger

from marketquotes.cache import CacheBackend, MemoryCache, NoCache
from marketquotes.clock import DEFAULT_CLOCK, Clock
from marketquotes.config import MarketDataConfig, ProviderType
from marketquotes.metrics import MetricsRecorder, ServiceMetrics
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.models.rate_limit import RateLimit
from marketquotes.normalize import normalize_symbol, unique_symbols
from marketquotes.providers import create_provider
from marketquotes.providers.base import DEFAULT_PERIOD, BaseQuoteProvider

HEALTH_CHECK_SYMBOL = "AAPL"


class MarketDataAggregator:
    """Central orchestrator: cache -> providers in priority order -> cache.

    Exposes the provider contract as one virtual provider. Nothing here
    raises on a data failure: an exhausted provider chain yields ``None``,
    a partial mapping, or ``[]``.

    Usage::

        from marketquotes import create_aggregator_from_env
        agg = create_aggregator_from_env()
        quote = agg.get_quote("AAPL")
    """

    def __init__(
        self,
        config: MarketDataConfig | None = None,
        providers: list[BaseQuoteProvider] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or MarketDataConfig()
        self.clock = clock or DEFAULT_CLOCK

        # Build provider chain
        if providers is None:
            providers = [self._build_provider(pt) for pt in self.config.provider_chain()]
        self.providers: list[BaseQuoteProvider] = list(providers)

        # Build cache
        self.cache: CacheBackend
        if self.config.cache_backend == "memory":
            quote_ttl = self.config.quote_cache_ttl_seconds
            if quote_ttl is None:
                quote_ttl = min(
                    (p.QUOTE_TTL_SECONDS for p in self.providers),
                    default=BaseQuoteProvider.QUOTE_TTL_SECONDS,
                )
            history_ttl = self.config.history_cache_ttl_seconds
            if history_ttl is None:
                history_ttl = min(
                    (p.HISTORY_TTL_SECONDS for p in self.providers),
                    default=BaseQuoteProvider.HISTORY_TTL_SECONDS,
                )
            self.cache = MemoryCache(
                quote_ttl_seconds=quote_ttl,
                history_ttl_seconds=history_ttl,
                max_entries=self.config.cache_max_entries,
                clock=self.clock,
            )
        else:
            self.cache = NoCache()

        self.metrics = MetricsRecorder(enabled=self.config.enable_metrics, clock=self.clock)

        logger.info(
            f"Initialized {len(self.providers)} market data providers: "
            f"{[p.name for p in self.providers]}"
        )

    def _build_provider(self, pt: ProviderType) -> BaseQuoteProvider:
        kwargs: dict[str, Any] = {"clock": self.clock}
        if pt is ProviderType.ALPHA_VANTAGE and self.config.alpha_vantage_api_key:
            kwargs["api_key"] = self.config.alpha_vantage_api_key
        elif pt is ProviderType.FINNHUB and self.config.finnhub_api_key:
            kwargs["api_key"] = self.config.finnhub_api_key
        elif pt is ProviderType.YAHOO and self.config.yahoo_user_agent:
            kwargs["user_agent"] = self.config.yahoo_user_agent
        return create_provider(pt, **kwargs)

    # --------------------------------------------------------------- quotes

    def get_quote(self, symbol: str) -> QuoteData | None:
        """First quote any available provider returns, in priority order."""
        key = normalize_symbol(symbol)
        if not key:
            return None
        self.metrics.record_request()

        cached = self.cache.get_quote(key)
        if cached is not None:
            self.metrics.record_cache_hit()
            logger.bind(symbol=key).debug(f"Cache hit for {key} ({cached.source})")
            return cached
        self.metrics.record_cache_miss()

        started = self.clock.monotonic()
        for provider in self.providers:
            if not provider.is_available():
                continue
            quote = provider.get_quote(key)
            if quote is None:
                continue
            self.cache.store_quote(quote)
            elapsed_ms = (self.clock.monotonic() - started) * 1000
            self.metrics.record_success(provider.name, elapsed_ms=elapsed_ms)
            return quote

        self.metrics.record_failure()
        logger.bind(symbol=key).warning(f"All providers failed to quote {key}")
        return None

    def get_batch_quotes(self, symbols: list[str]) -> dict[str, QuoteData]:
        """Quotes for many symbols, failing over per missing symbol.

        The whole uncached set goes to the first available provider; only the
        symbols it did not return go to the next one. The mapping is ordered
        as requested and omits symbols no provider could quote.
        """
        keys = unique_symbols(symbols)
        if not keys:
            return {}
        self.metrics.record_request(len(keys))

        found: dict[str, QuoteData] = {}
        pending: list[str] = []
        for key in keys:
            cached = self.cache.get_quote(key)
            if cached is not None:
                found[key] = cached
            else:
                pending.append(key)
        self.metrics.record_cache_hit(len(keys) - len(pending))
        self.metrics.record_cache_miss(len(pending))

        for provider in self.providers:
            if not pending:
                break
            if not provider.is_available():
                continue
            got = provider.get_batch_quotes(pending)
            served = [s for s in pending if s in got]
            for s in served:
                found[s] = got[s]
                self.cache.store_quote(got[s])
            self.metrics.record_success(provider.name, count=len(served))
            pending = [s for s in pending if s not in got]

        if pending:
            self.metrics.record_failure(len(pending))
            logger.warning(f"No provider could quote {pending}")
        return {k: found[k] for k in keys if k in found}

    # ----------------------------------------------------------- historical

    def get_historical_data(
        self,
        symbol: str,
        period: str = DEFAULT_PERIOD,
    ) -> list[HistoricalBar]:
        """First non-empty series any available provider returns."""
        key = normalize_symbol(symbol)
        if not key:
            return []

        cached = self.cache.get_history(key, period)
        if cached is not None:
            logger.bind(symbol=key).debug(f"Cache hit for {key} history ({period})")
            return cached

        for provider in self.providers:
            if not provider.is_available():
                continue
            bars = provider.get_historical_data(key, period)
            if bars:
                self.cache.store_history(key, period, bars)
                return bars

        logger.bind(symbol=key).warning(f"All providers failed to return history for {key}")
        return []

    # -------------------------------------------------------------- status

    def is_available(self) -> bool:
        return any(p.is_available() for p in self.providers)

    def get_rate_limit(self) -> RateLimit:
        """Combined budget: remaining calls summed, earliest pending reset.

        Providers without a call limit (the mock fallback) are left out.
        """
        limits = [p.get_rate_limit() for p in self.providers if not p.gate.is_unlimited]
        resets = [rl.reset_at for rl in limits if rl.reset_at is not None]
        return RateLimit(
            remaining=sum(rl.remaining for rl in limits),
            reset_at=min(resets) if resets else None,
        )

    def provider_statuses(self) -> list[dict[str, Any]]:
        return [
            {
                "name": p.name,
                "available": p.is_available(),
                "rate_limit": p.get_rate_limit(),
            }
            for p in self.providers
        ]

    def check_health(self, test_symbol: str = HEALTH_CHECK_SYMBOL) -> dict[str, Any]:
        """Fetch a probe quote and grade the service.

        ``healthy``: real data came back and some provider is available.
        ``degraded``: only synthetic data came back. ``error``: nothing did.
        """
        started = self.clock.monotonic()
        quote = self.get_quote(test_symbol)
        response_ms = (self.clock.monotonic() - started) * 1000

        statuses = self.provider_statuses()
        available = [s for s in statuses if s["available"]]
        is_real = quote is not None and quote.is_real_data

        if quote is not None and is_real and available:
            status = "healthy"
        elif quote is not None:
            status = "degraded"
        else:
            status = "error"

        return {
            "status": status,
            "details": {
                "response_ms": response_ms,
                "data_source": quote.source if quote is not None else None,
                "is_real_data": is_real,
                "test_price": quote.price if quote is not None else None,
                "cache_size": len(self.cache),
                "available_providers": len(available),
                "total_providers": len(self.providers),
                **self.metrics.snapshot().to_dict(),
            },
            "providers": statuses,
        }

    def get_metrics(self) -> ServiceMetrics:
        return self.metrics.snapshot()

    # --------------------------------------------------------------- cache

    def clear_cache(self, symbol: str | None = None) -> None:
        """Drop cached entries for ``symbol``, or everything when omitted."""
        if symbol is None:
            self.cache.clear_all()
        else:
            self.cache.clear(symbol)
