"""marketquotes — Rate-limited multi-provider stock quotes.

Multi-provider (Alpha Vantage, Yahoo Finance, Finnhub), per-provider call
budgets, automatic failover, caching, and normalized data models.

Quick start::

    from marketquotes import create_aggregator_from_env
    agg = create_aggregator_from_env()
    quote = agg.get_quote("AAPL")
    bars = agg.get_historical_data("AAPL", period="1mo")
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from marketquotes.aggregator import MarketDataAggregator
from marketquotes.config import MarketDataConfig, ProviderType, default_provider_order
from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.metrics import ServiceMetrics
from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.models.rate_limit import RateLimit

__version__ = "0.1.0"

__all__ = [
    # Aggregator
    "MarketDataAggregator",
    "create_aggregator_from_env",
    # Config
    "MarketDataConfig",
    "ProviderType",
    # Errors
    "MarketDataError",
    "MarketDataErrorCode",
    # Models
    "QuoteData",
    "HistoricalBar",
    "RateLimit",
    "ServiceMetrics",
]

_FALSY = {"0", "false", "no", "off"}


def create_aggregator_from_env() -> MarketDataAggregator:
    """Zero-config factory — reads provider order and API keys from env vars.

    A ``.env`` file in the working directory is loaded first; variables
    already set in the environment win.

    Environment variables:
        MARKET_DATA_PROVIDERS: Comma-separated provider list. When unset the
            order is derived from the two variables below.
        USE_YAHOO_FINANCE_PRIMARY: "true" puts Yahoo Finance ahead of Alpha Vantage.
        ALPHA_VANTAGE_API_KEY: Alpha Vantage key (NEXT_PUBLIC_ALPHA_VANTAGE_API_KEY
            is accepted too). Alpha Vantage joins the default order only with
            a real key.
        FINNHUB_API_KEY: Finnhub API key.
        MARKET_DATA_MOCK_FALLBACK: Append synthetic mock data last (default: "true").
        MARKET_DATA_CACHE: Cache backend — "memory", "none" (default: "memory").
    """
    load_dotenv()

    av_key = os.getenv("ALPHA_VANTAGE_API_KEY") or os.getenv("NEXT_PUBLIC_ALPHA_VANTAGE_API_KEY")

    provider_str = os.getenv("MARKET_DATA_PROVIDERS", "")
    if provider_str.strip():
        provider_types = [
            ProviderType(name.strip().lower())
            for name in provider_str.split(",")
            if name.strip()
        ]
    else:
        provider_types = default_provider_order(
            yahoo_primary=os.getenv("USE_YAHOO_FINANCE_PRIMARY", "").lower() == "true",
            alpha_vantage_key=av_key,
        )

    config = MarketDataConfig(
        providers=provider_types,
        enable_mock_fallback=os.getenv("MARKET_DATA_MOCK_FALLBACK", "true").lower() not in _FALSY,
        cache_backend=os.getenv("MARKET_DATA_CACHE", "memory"),
        alpha_vantage_api_key=av_key,
        finnhub_api_key=os.getenv("FINNHUB_API_KEY"),
    )

    return MarketDataAggregator(config)
