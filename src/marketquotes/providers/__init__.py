"""Quote provider registry."""

from __future__ import annotations

from marketquotes.config import ProviderType
from marketquotes.providers.base import BaseQuoteProvider

# Lazy registry: provider modules are imported on demand.
PROVIDER_CLASSES: dict[ProviderType, str] = {
    ProviderType.ALPHA_VANTAGE: "marketquotes.providers.alpha_vantage.AlphaVantageProvider",
    ProviderType.YAHOO: "marketquotes.providers.yahoo.YahooFinanceProvider",
    ProviderType.FINNHUB: "marketquotes.providers.finnhub.FinnhubProvider",
    ProviderType.MOCK: "marketquotes.providers.mock.MockProvider",
}


def create_provider(
    provider_type: ProviderType,
    **kwargs,
) -> BaseQuoteProvider:
    """Instantiate a provider by type, forwarding kwargs to its constructor."""
    import importlib

    dotted = PROVIDER_CLASSES[provider_type]
    module_path, cls_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls(**kwargs)


__all__ = ["BaseQuoteProvider", "PROVIDER_CLASSES", "create_provider"]
