"""
Data ingestion tests: Yahoo/Finnhub payload mapping and quote failover.
"""

from datetime import datetime
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from conftest import FakeQuoteProvider
from stocksight.schemas.market import Interval
from stocksight.services.base import DataUnavailableError, ExternalAPIError
from stocksight.services.data_ingestion import yahoo_adapter
from stocksight.services.data_ingestion.finnhub_adapter import FinnhubClient, quote_from_payload
from stocksight.services.data_ingestion.quotes import QuoteService


def _frame(rows):
    index = pd.DatetimeIndex([r[0] for r in rows])
    return pd.DataFrame(
        {
            "Open": [r[1] for r in rows],
            "High": [r[1] for r in rows],
            "Low": [r[1] for r in rows],
            "Close": [r[1] for r in rows],
            "Volume": [r[2] for r in rows],
        },
        index=index,
    )


class FakeTicker:
    """yf.Ticker stand-in with canned history and info."""

    frame = None
    info = {}

    def __init__(self, symbol):
        self.symbol = symbol

    def history(self, **kwargs):
        FakeTicker.last_kwargs = kwargs
        return self.frame


@pytest.fixture
def fake_yf(monkeypatch):
    FakeTicker.frame = None
    FakeTicker.info = {}
    monkeypatch.setattr(yahoo_adapter, "yf", SimpleNamespace(Ticker=FakeTicker))
    return FakeTicker


# =============================================================================
# YAHOO FINANCE
# =============================================================================


class TestYahooAdapter:
    def test_frame_to_points_sorts_and_skips_bad_rows(self):
        frame = _frame(
            [
                ("2024-01-03", 102.0, 300),
                ("2024-01-01", 100.0, 100),
                ("2024-01-02", np.nan, 200),
                ("2024-01-04", 0.0, 400),
            ]
        )
        points = yahoo_adapter.frame_to_points(frame)

        assert [p.close for p in points] == [100.0, 102.0]
        assert points[0].date < points[1].date
        assert points[1].volume == 300

    async def test_fetch_history(self, fake_yf):
        fake_yf.frame = _frame([("2024-01-01", 100.0, 10), ("2024-01-02", 101.0, 20)])

        history = await yahoo_adapter.fetch_yahoo_history("aapl", days=30, interval=Interval.W1)

        assert history.ticker == "AAPL"
        assert history.closes == [100.0, 101.0]
        assert history.interval == Interval.W1
        assert history.source == "Yahoo Finance"
        assert fake_yf.last_kwargs["interval"] == "1wk"

    async def test_fetch_history_empty_raises(self, fake_yf):
        fake_yf.frame = pd.DataFrame()
        with pytest.raises(ExternalAPIError):
            await yahoo_adapter.fetch_yahoo_history("AAPL")

    def test_frame_to_points_skips_zero_open(self):
        frame = pd.DataFrame(
            {
                "Open": [0.0, 101.0],
                "High": [101.0, 102.0],
                "Low": [99.0, 100.0],
                "Close": [100.0, 101.5],
                "Volume": [100, 200],
            },
            index=pd.DatetimeIndex(["2024-01-01", "2024-01-02"]),
        )
        points = yahoo_adapter.frame_to_points(frame)

        assert len(points) == 1
        assert points[0].open == 101.0

    async def test_fetch_history_malformed_bars_raise_external_error(self, fake_yf):
        fake_yf.frame = _frame([("2024-01-01", 100.0, -5)])
        with pytest.raises(ExternalAPIError, match="Malformed history"):
            await yahoo_adapter.fetch_yahoo_history("AAPL")

    async def test_fetch_quote(self, fake_yf):
        fake_yf.info = {
            "regularMarketPrice": 187.5,
            "regularMarketPreviousClose": 185.0,
            "regularMarketVolume": 1000,
            "longName": "Apple Inc.",
        }
        quote = await yahoo_adapter.fetch_yahoo_quote("AAPL")

        assert quote.price == 187.5
        assert quote.change == 2.5
        assert quote.change_percent == pytest.approx(1.35)
        assert quote.name == "Apple Inc."
        assert quote.volume == 1000

    async def test_fetch_quote_without_price_raises(self, fake_yf):
        fake_yf.info = {"longName": "Delisted Co"}
        with pytest.raises(ExternalAPIError):
            await yahoo_adapter.fetch_yahoo_quote("GONE")

    def test_details_from_info(self):
        details = yahoo_adapter.details_from_info(
            "MSFT",
            {
                "shortName": "Microsoft",
                "currentPrice": 415.123,
                "marketCap": 3.1e12,
                "fiftyTwoWeekHigh": 430.821,
                "trailingPE": 36.2,
                "sector": "Technology",
            },
        )

        assert details["name"] == "Microsoft"
        assert details["price"] == 415.12
        assert details["market_cap_formatted"] == "3.10T"
        assert details["fifty_two_week_high"] == 430.82
        assert details["pe_ratio"] == 36.2
        assert details["bid"] is None
        assert details["description"] == "Microsoft stock information."

    @pytest.mark.parametrize(
        "value,expected",
        [(None, "N/A"), (2.5e9, "2.50B"), (7.0e6, "7.00M"), (1500, "1.50K"), (12, "12")],
    )
    def test_format_large_number(self, value, expected):
        assert yahoo_adapter.format_large_number(value) == expected


# =============================================================================
# FINNHUB
# =============================================================================


class TestFinnhubAdapter:
    def test_quote_from_payload(self):
        quote = quote_from_payload(
            "AAPL", {"c": 187.5, "d": 2.456, "dp": 1.328, "pc": 185.044, "t": 1707000000}
        )

        assert quote.price == 187.5
        assert quote.change == 2.46
        assert quote.change_percent == 1.33
        assert quote.previous_close == 185.044
        assert quote.source == "Finnhub"
        assert quote.timestamp == datetime.fromtimestamp(1707000000)

    def test_zero_price_means_unknown_symbol(self):
        with pytest.raises(ExternalAPIError):
            quote_from_payload("NOPE", {"c": 0, "d": None, "dp": None, "pc": 0, "t": 0})

    async def test_missing_api_key(self):
        client = FinnhubClient(api_key="")
        assert client.is_configured is False
        with pytest.raises(ExternalAPIError, match="not configured"):
            await client.get_quote("AAPL")


# =============================================================================
# QUOTE SERVICE
# =============================================================================


class TestQuoteService:
    async def test_primary_wins(self):
        primary = FakeQuoteProvider(prices={"AAPL": 100.0})
        secondary = FakeQuoteProvider(prices={"AAPL": 99.0}, source="Finnhub")
        service = QuoteService(providers=[("Yahoo Finance", primary), ("Finnhub", secondary)])

        quote = await service.get_quote("aapl")
        assert quote.price == 100.0
        assert secondary.calls == []

    async def test_falls_back_to_secondary(self):
        service = QuoteService(
            providers=[
                ("Yahoo Finance", FakeQuoteProvider(error="rate limited")),
                ("Finnhub", FakeQuoteProvider(prices={"AAPL": 99.0}, source="Finnhub")),
            ]
        )
        quote = await service.get_quote("AAPL")
        assert quote.source == "Finnhub"

    async def test_all_fail(self):
        service = QuoteService(
            providers=[
                ("Yahoo Finance", FakeQuoteProvider(error="rate limited")),
                ("Finnhub", FakeQuoteProvider(error="no key", source="Finnhub")),
            ]
        )
        with pytest.raises(DataUnavailableError) as exc_info:
            await service.get_quote("AAPL")
        assert exc_info.value.details["errors"] == [
            "Yahoo Finance: rate limited",
            "Finnhub: no key",
        ]

    async def test_batch_drops_failures(self):
        service = QuoteService(
            providers=[("Yahoo Finance", FakeQuoteProvider(prices={"AAPL": 1.0, "MSFT": 2.0}))]
        )
        quotes = await service.get_quotes(["AAPL", "BAD", "MSFT"])
        assert [q.ticker for q in quotes] == ["AAPL", "MSFT"]
