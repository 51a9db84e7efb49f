"""
Test configuration and fixtures for the StockSight backend.

Every provider is faked: no test touches the network.
"""

import os
import sys
import logging
from datetime import datetime, timedelta

import pytest

# Add the backend directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from stocksight.schemas.market import PricePoint, PriceHistory, QuoteSnapshot
from stocksight.services.base import ExternalAPIError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def make_history(closes, ticker="TEST", volumes=None, source="Yahoo Finance"):
    """Daily PriceHistory with one bar per close."""
    start = datetime(2024, 1, 1)
    volumes = volumes or [1_000_000] * len(closes)
    points = [
        PricePoint(
            date=start + timedelta(days=i),
            open=close,
            high=close,
            low=close,
            close=close,
            volume=volume,
        )
        for i, (close, volume) in enumerate(zip(closes, volumes))
    ]
    return PriceHistory(ticker=ticker, points=points, source=source)


def make_quote(ticker="TEST", price=100.0, source="Yahoo Finance", volume=0):
    return QuoteSnapshot(
        ticker=ticker,
        price=price,
        source=source,
        volume=volume,
        timestamp=datetime(2024, 2, 1),
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHistoryProvider:
    """Async history fetcher returning canned closes, or raising."""

    def __init__(self, closes=None, error=None, source="Yahoo Finance"):
        self.closes = closes
        self.error = error
        self.source = source
        self.calls = []

    async def __call__(self, ticker, days=60, **kwargs):
        self.calls.append((ticker, days))
        if self.error:
            raise ExternalAPIError(self.source, self.error)
        return make_history(self.closes, ticker=ticker, source=self.source)


class FakeQuoteProvider:
    """Async quote fetcher returning a fixed price per ticker, or raising."""

    def __init__(self, prices=None, error=None, source="Yahoo Finance"):
        self.prices = prices or {}
        self.error = error
        self.source = source
        self.calls = []

    async def __call__(self, ticker):
        self.calls.append(ticker)
        if self.error or ticker not in self.prices:
            raise ExternalAPIError(self.source, self.error or f"No quote price for {ticker}")
        return make_quote(ticker=ticker, price=self.prices[ticker], source=self.source)


class FakeMLClient:
    """Stand-in for MLPredictionClient with canned payloads."""

    base_url = "https://ml.example.test"

    def __init__(self, analysis=None, predictions=None, error=None, chart=b"\x89PNG fake", status=None):
        self.analysis = analysis
        self.predictions = predictions
        self.error = error
        self.chart = chart
        self.status = status
        self.chart_requests = []

    async def analyze_stock(self, ticker):
        if self.error:
            raise ExternalAPIError("ML Service", self.error)
        return self.analysis

    async def get_predictions(self, ticker):
        if self.error:
            raise ExternalAPIError("ML Service", self.error)
        return self.predictions

    def chart_url(self, ticker, chart_type="prediction"):
        return f"{self.base_url}/download_chart/{ticker}/{chart_type}"

    async def download_chart(self, ticker, chart_type="prediction"):
        self.chart_requests.append((ticker, chart_type))
        if self.error:
            details = {"status": self.status} if self.status else None
            raise ExternalAPIError("ML Service", self.error, details=details)
        return self.chart

    async def health_check(self):
        if self.error:
            raise ExternalAPIError("ML Service", self.error)
        return {"message": "Stock prediction API is running"}


@pytest.fixture
def rising_closes():
    """100, 101, ..., 119: slope exactly 1."""
    return [100.0 + i for i in range(20)]


@pytest.fixture
def flat_closes():
    return [100.0] * 20


@pytest.fixture
def long_closes():
    """250 closes with a gentle uptrend and a deterministic wobble."""
    return [100.0 + i * 0.5 + (3.0 if i % 3 == 0 else -1.5) for i in range(250)]


@pytest.fixture
def fake_clock():
    return FakeClock()
