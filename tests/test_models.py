"""Tests for data models."""

from datetime import date, datetime

import pytest

from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData
from marketquotes.models.rate_limit import RateLimit

from conftest import make_quote


class TestQuoteData:
    def test_create(self):
        quote = make_quote()
        assert isinstance(quote, QuoteData)
        assert quote.symbol == "AAPL"
        assert quote.is_real_data
        assert quote.currency is None
        assert quote.market_cap is None

    def test_frozen(self):
        quote = make_quote()
        with pytest.raises(AttributeError):
            quote.price = 999.0  # type: ignore[misc]

    def test_to_dict_camel_case(self):
        d = make_quote().to_dict()
        assert d["changePercent"] == 1.0101
        assert d["previousClose"] == 148.5
        assert d["lastUpdate"] == "2024-01-15"
        assert d["isRealData"] is True
        assert "currency" not in d
        assert "marketCap" not in d

    def test_to_dict_optional_fields(self):
        d = make_quote(currency="USD", market_cap=3.0e12).to_dict()
        assert d["currency"] == "USD"
        assert d["marketCap"] == 3.0e12


class TestHistoricalBar:
    def test_date_property(self):
        bar = HistoricalBar(
            timestamp=datetime(2024, 1, 15, 14, 0),
            open=150.0, high=151.0, low=149.0, close=150.5, volume=10_000,
        )
        assert bar.date == date(2024, 1, 15)

    def test_to_dict_daily(self):
        bar = HistoricalBar(
            timestamp=datetime(2024, 1, 15),
            open=150.0, high=151.0, low=149.0, close=150.5, volume=10_000,
        )
        assert bar.to_dict()["date"] == "2024-01-15"

    def test_to_dict_intraday(self):
        bar = HistoricalBar(
            timestamp=datetime(2024, 1, 15, 14, 0),
            open=150.0, high=151.0, low=149.0, close=150.5, volume=10_000,
        )
        assert bar.to_dict()["date"] == "2024-01-15 14:00:00"

    def test_frozen(self):
        bar = HistoricalBar(
            timestamp=datetime(2024, 1, 15),
            open=150.0, high=151.0, low=149.0, close=150.5, volume=10_000,
        )
        with pytest.raises(AttributeError):
            bar.close = 999.0  # type: ignore[misc]


class TestRateLimit:
    def test_defaults(self):
        rl = RateLimit(remaining=5)
        assert rl.remaining == 5
        assert rl.reset_at is None
