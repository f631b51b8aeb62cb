"""Tests for FinnhubProvider — quote and candle parsing over REST."""

from datetime import date, datetime, timedelta

from marketquotes.providers.finnhub import FINNHUB_BASE_URL, FinnhubProvider

from conftest import FakeResponse, make_session

JAN_15 = 1705276800  # 2024-01-15 00:00 UTC

QUOTE_BODY = {
    "c": 150.0,
    "d": 1.5,
    "dp": 1.0101,
    "h": 151.0,
    "l": 148.0,
    "o": 149.0,
    "pc": 148.5,
    "t": 1705330800,
}


def _provider(clock, *responses, api_key="fh-key"):
    session = make_session(*responses)
    return FinnhubProvider(api_key=api_key, clock=clock, session=session), session


class TestConfiguration:
    def test_requires_key(self, clock):
        provider, session = _provider(clock, FakeResponse(QUOTE_BODY), api_key=None)
        assert not provider.is_available()
        assert provider.get_quote("AAPL") is None
        session.get.assert_not_called()

    def test_token_header(self, clock):
        _, session = _provider(clock, FakeResponse(QUOTE_BODY))
        session.headers.update.assert_called_once_with({"X-Finnhub-Token": "fh-key"})


class TestQuote:
    def test_parse(self, clock):
        provider, session = _provider(clock, FakeResponse(QUOTE_BODY))
        quote = provider.get_quote("aapl")

        assert quote is not None
        assert quote.symbol == "AAPL"
        assert quote.price == 150.0
        assert quote.change == 1.5
        assert quote.change_percent == 1.01
        assert quote.previous_close == 148.5
        assert quote.volume == 0
        assert quote.last_update == date(2024, 1, 15)
        assert quote.source == "Finnhub"

        args, kwargs = session.get.call_args
        assert args[0] == FINNHUB_BASE_URL + "/quote"
        assert kwargs["params"] == {"symbol": "AAPL"}

    def test_unknown_symbol_zero_price(self, clock):
        body = {"c": 0, "d": None, "dp": None, "h": 0, "l": 0, "o": 0, "pc": 0, "t": 0}
        provider, _ = _provider(clock, FakeResponse(body))
        assert provider.get_quote("ZZZZ") is None
        assert provider.get_rate_limit().remaining == 60

    def test_error_body(self, clock):
        provider, _ = _provider(clock, FakeResponse({"error": "Invalid API key"}))
        assert provider.get_quote("AAPL") is None

    def test_auth_failure(self, clock):
        provider, _ = _provider(clock, FakeResponse(status_code=401))
        assert provider.get_quote("AAPL") is None

    def test_429_throttles(self, clock):
        provider, _ = _provider(clock, FakeResponse(status_code=429))
        assert provider.get_quote("AAPL") is None
        assert not provider.is_available()
        assert provider.get_rate_limit().reset_at == clock.now() + timedelta(seconds=60)

    def test_missing_timestamp_uses_today(self, clock):
        body = dict(QUOTE_BODY, t=None)
        provider, _ = _provider(clock, FakeResponse(body))
        assert provider.get_quote("AAPL").last_update == clock.today()


class TestHistorical:
    def test_daily_candles(self, clock):
        body = {
            "s": "ok",
            "t": [JAN_15 - 86_400 * i for i in range(2, -1, -1)],
            "o": [100.0, 101.0, 102.0],
            "h": [101.0, 102.0, 103.0],
            "l": [99.0, 100.0, 101.0],
            "c": [100.5, 101.5, 102.5],
            "v": [1000, 2000, 3000],
        }
        provider, session = _provider(clock, FakeResponse(body))
        bars = provider.get_historical_data("AAPL")

        assert [b.timestamp for b in bars] == [
            datetime(2024, 1, 15),
            datetime(2024, 1, 14),
            datetime(2024, 1, 13),
        ]
        assert bars[0].close == 102.5
        assert bars[0].volume == 3000
        _, kwargs = session.get.call_args
        assert kwargs["params"]["resolution"] == "D"
        assert kwargs["params"]["to"] - kwargs["params"]["from"] == 60 * 86_400

    def test_intraday_resolution(self, clock):
        provider, session = _provider(clock, FakeResponse({"s": "no_data"}))
        assert provider.get_historical_data("AAPL", period="1d") == []
        _, kwargs = session.get.call_args
        assert kwargs["params"]["resolution"] == "60"
