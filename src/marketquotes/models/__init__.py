"""Market data models."""

from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.models.rate_limit import RateLimit

__all__ = [
    "HistoricalBar",
    "QuoteData",
    "RateLimit",
]
