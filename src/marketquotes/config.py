"""Market data configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ProviderType(Enum):
    """Supported quote provider backends."""

    ALPHA_VANTAGE = "alpha_vantage"
    YAHOO = "yahoo"
    FINNHUB = "finnhub"
    MOCK = "mock"


@dataclass
class MarketDataConfig:
    """Configuration for MarketDataAggregator.

    Attributes:
        providers: Provider backends ordered by priority (most trusted first).
        enable_mock_fallback: Append the synthetic MockProvider as last resort.
        cache_backend: Cache type — "memory" or "none".
        quote_cache_ttl_seconds: Freshness window for cached quotes. None uses
            the shortest QUOTE_TTL_SECONDS hint among the chain's providers.
        history_cache_ttl_seconds: Freshness window for cached series. None
            uses the shortest HISTORY_TTL_SECONDS hint.
        cache_max_entries: LRU bound on the memory cache.
        enable_metrics: Whether the aggregator records ServiceMetrics.
        alpha_vantage_api_key: Alpha Vantage API key ("DEMO" counts as unset).
        finnhub_api_key: Finnhub API key.
        yahoo_user_agent: User-Agent sent to Yahoo Finance; None keeps the default.
    """

    providers: list[ProviderType] = field(
        default_factory=lambda: [ProviderType.ALPHA_VANTAGE, ProviderType.YAHOO]
    )
    enable_mock_fallback: bool = True
    cache_backend: str = "memory"
    quote_cache_ttl_seconds: int | None = None
    history_cache_ttl_seconds: int | None = None
    cache_max_entries: int = 1000
    enable_metrics: bool = True

    alpha_vantage_api_key: str | None = None
    finnhub_api_key: str | None = None
    yahoo_user_agent: str | None = None

    def provider_chain(self) -> list[ProviderType]:
        """Configured providers, deduplicated, with the mock fallback last."""
        chain: list[ProviderType] = []
        for pt in self.providers:
            if pt not in chain:
                chain.append(pt)
        if self.enable_mock_fallback and ProviderType.MOCK not in chain:
            chain.append(ProviderType.MOCK)
        return chain


def default_provider_order(
    yahoo_primary: bool,
    alpha_vantage_key: str | None,
) -> list[ProviderType]:
    """Priority order used when no explicit provider list is configured.

    Alpha Vantage joins the chain only with a real key; Yahoo goes first
    when ``yahoo_primary`` is set, otherwise it backs up Alpha Vantage.
    """
    has_av_key = bool(alpha_vantage_key) and alpha_vantage_key.strip().upper() != "DEMO"
    order: list[ProviderType] = []
    if yahoo_primary:
        order.append(ProviderType.YAHOO)
    if has_av_key:
        order.append(ProviderType.ALPHA_VANTAGE)
    if not yahoo_primary:
        order.append(ProviderType.YAHOO)
    return order
