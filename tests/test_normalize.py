"""Tests for normalization helpers."""

from datetime import date, datetime, timedelta

import pytest

from marketquotes.errors import MarketDataError, MarketDataErrorCode
from marketquotes.normalize import (
    epoch_to_datetime,
    latest_bars,
    normalize_symbol,
    parse_day,
    parse_number,
    parse_percent,
    parse_timestamp,
    parse_volume,
    round2,
    unique_symbols,
)

from conftest import make_bar


class TestSymbols:
    def test_normalize(self):
        assert normalize_symbol(" aapl ") == "AAPL"
        assert normalize_symbol("") == ""

    def test_unique_keeps_order(self):
        assert unique_symbols(["msft", "AAPL", "MSFT", " ", "aapl", "GOOGL"]) == [
            "MSFT", "AAPL", "GOOGL",
        ]


class TestParseNumber:
    def test_numeric_string(self):
        assert parse_number("150.0000", "price") == 150.0

    def test_thousands_separator(self):
        assert parse_number("1,234.5", "price") == 1234.5

    def test_number_passthrough(self):
        assert parse_number(42, "price") == 42.0

    @pytest.mark.parametrize("value", [None, "", "  ", "abc", "nan", "inf", True])
    def test_rejects(self, value):
        with pytest.raises(MarketDataError) as exc_info:
            parse_number(value, "price")
        assert exc_info.value.code is MarketDataErrorCode.MALFORMED_RESPONSE

    def test_missing_is_not_zero(self):
        with pytest.raises(MarketDataError):
            parse_number(None, "09. change")


class TestParsePercent:
    def test_strips_percent_sign(self):
        assert parse_percent("1.23%", "pct") == pytest.approx(1.23)

    def test_negative(self):
        assert parse_percent("-0.4521%", "pct") == pytest.approx(-0.4521)

    def test_plain_number(self):
        assert parse_percent(2.5, "pct") == 2.5


class TestParseVolume:
    def test_integer(self):
        assert parse_volume("50000000", "volume") == 50_000_000

    def test_negative_rejected(self):
        with pytest.raises(MarketDataError):
            parse_volume("-1", "volume")


class TestParseDates:
    def test_day(self):
        assert parse_day("2024-01-15", "day") == date(2024, 1, 15)

    def test_bad_day(self):
        with pytest.raises(MarketDataError):
            parse_day("15/01/2024", "day")

    def test_timestamp_intraday(self):
        assert parse_timestamp("2024-01-15 15:00:00", "ts") == datetime(2024, 1, 15, 15, 0)

    def test_timestamp_daily(self):
        assert parse_timestamp("2024-01-15", "ts") == datetime(2024, 1, 15)

    def test_epoch(self):
        assert epoch_to_datetime(1705330800, "t") == datetime(2024, 1, 15, 15, 0)


class TestLatestBars:
    def test_truncates_to_newest_thirty_descending(self):
        start = date(2023, 9, 1)
        bars = [make_bar(start + timedelta(days=i)) for i in range(90)]
        result = latest_bars(bars)
        assert len(result) == 30
        assert result[0].date == start + timedelta(days=89)
        assert result[-1].date == start + timedelta(days=60)
        assert all(
            result[i].timestamp > result[i + 1].timestamp
            for i in range(len(result) - 1)
        )

    def test_short_series_kept(self, sample_bars):
        assert latest_bars(list(reversed(sample_bars))) == sample_bars


def test_round2():
    assert round2(1.23456) == 1.23
