"""
Prediction fallback chain tests.

ML service -> history regression -> snapshot regression, with every
provider faked.
"""

import pytest

from conftest import FakeHistoryProvider, FakeMLClient, FakeQuoteProvider
from stocksight.schemas.prediction import (
    ModelUsed,
    PredictionRequest,
    RiskLevel,
    SignalType,
)
from stocksight.services.base import DataUnavailableError, ValidationError
from stocksight.services.cache import ResponseCache, TTLCache
from stocksight.services.prediction import (
    PredictionResolver,
    MLStrategy,
    HistoryRegressionStrategy,
    SnapshotRegressionStrategy,
)
from stocksight.services.prediction.strategies import extract_predicted_close

ML_ANALYSIS = {
    "message": "Analysis complete for AAPL",
    "data_preview": [{"Date": "2024-02-05", "Predicted_Close": 110.0}],
}
ML_PREDICTIONS = {"predictions": [{"Date": "2024-02-05", "Predicted_Close": 112.0}]}


def build_resolver(
    ml=None,
    history=None,
    snapshot=None,
    live_quote=None,
    cache=None,
):
    ml = ml or FakeMLClient(analysis=ML_ANALYSIS, predictions=ML_PREDICTIONS)
    history = history or FakeHistoryProvider(closes=[100.0 + i for i in range(20)])
    snapshot = snapshot or FakeQuoteProvider(prices={"AAPL": 150.0}, source="Finnhub")
    live_quote = live_quote or FakeQuoteProvider(prices={"AAPL": 100.0})
    return PredictionResolver(
        strategies=[
            MLStrategy(ml),
            HistoryRegressionStrategy(history),
            SnapshotRegressionStrategy(snapshot),
        ],
        fetch_current_quote=live_quote,
        cache=cache,
    )


class TestFallbackChain:
    async def test_ml_success(self):
        resolver = build_resolver()
        resolution = await resolver.resolve(PredictionRequest(ticker="aapl"))
        response = resolution.response

        assert resolution.strategy == "ml_service"
        assert response.ticker == "AAPL"
        assert response.model == ModelUsed.ML_LSTM
        assert response.predicted_price == 112.0
        assert response.current_price == 100.0
        assert response.price_change == 12.0
        assert response.signal == SignalType.BUY
        assert response.risk == RiskLevel.HIGH
        assert response.confidence == 0.82
        assert response.ml_available is True
        assert response.ml_error is None
        assert response.source == "ML Service"
        assert response.chart_url.endswith("/download_chart/AAPL/prediction")
        assert response.recommendation == (
            "Based on ML analysis, AAPL is predicted to increase by 12.0%."
        )

    async def test_ml_signal_recomputed_from_change(self):
        ml = FakeMLClient(
            analysis=ML_ANALYSIS,
            predictions={"predictions": [{"Predicted_Close": 104.0}]},
        )
        response = (await build_resolver(ml=ml).resolve(PredictionRequest(ticker="AAPL"))).response

        assert response.signal == SignalType.HOLD
        assert response.risk == RiskLevel.MEDIUM

    async def test_ml_failure_falls_back_to_history(self):
        resolver = build_resolver(ml=FakeMLClient(error="timeout"))
        resolution = await resolver.resolve(PredictionRequest(ticker="AAPL"))
        response = resolution.response

        assert resolution.strategy == "history_regression"
        assert response.model == ModelUsed.LINEAR_REGRESSION
        assert response.source == "Yahoo Finance"
        assert response.current_price == 100.0
        assert response.predicted_price == 125.0
        assert response.price_change == 25.0
        # regression keeps its own signal: no change vs the window start
        assert response.signal == SignalType.HOLD
        assert response.ml_available is False
        assert "timeout" in response.ml_error
        assert response.recommendation == "Based on technical analysis, the signal is HOLD."
        assert len(response.factors) == 4
        assert resolution.errors[0].startswith("ml_service:")

    async def test_partial_ml_response_is_a_failure(self):
        ml = FakeMLClient(analysis=ML_ANALYSIS, predictions={})
        resolution = await build_resolver(ml=ml).resolve(PredictionRequest(ticker="AAPL"))

        assert resolution.response.model == ModelUsed.LINEAR_REGRESSION
        assert "predictions" in resolution.response.ml_error

    async def test_history_sets_current_price_when_live_quote_fails(self):
        resolver = build_resolver(live_quote=FakeQuoteProvider(error="quote down"))
        resolution = await resolver.resolve(PredictionRequest(ticker="AAPL"))
        response = resolution.response

        # ML cannot normalize without a current price
        assert response.model == ModelUsed.LINEAR_REGRESSION
        assert response.current_price == 119.0
        assert response.signal == SignalType.BUY
        assert "current price" in response.ml_error
        assert resolution.errors[0].startswith("current_quote:")

    async def test_snapshot_fallback(self):
        resolver = build_resolver(
            ml=FakeMLClient(error="timeout"),
            history=FakeHistoryProvider(error="no data"),
            live_quote=FakeQuoteProvider(error="quote down"),
        )
        resolution = await resolver.resolve(PredictionRequest(ticker="AAPL"))
        response = resolution.response

        assert resolution.strategy == "snapshot_regression"
        assert response.source == "Finnhub"
        assert response.current_price == 150.0
        assert response.predicted_price == 150.0
        assert response.price_change == 0.0
        assert response.confidence == 0.0
        assert response.signal == SignalType.HOLD
        assert response.risk == RiskLevel.LOW

    async def test_ml_disabled_is_skipped_silently(self):
        resolver = build_resolver()
        resolution = await resolver.resolve(PredictionRequest(ticker="AAPL", use_ml=False))

        assert resolution.response.model == ModelUsed.LINEAR_REGRESSION
        assert resolution.response.ml_available is False
        assert resolution.response.ml_error is None
        assert resolution.errors == []

    async def test_lookback_days_passed_to_history(self):
        history = FakeHistoryProvider(closes=[100.0 + i for i in range(20)])
        resolver = build_resolver(history=history)
        await resolver.resolve(PredictionRequest(ticker="AAPL", use_ml=False, lookback_days=90))

        assert history.calls == [("AAPL", 90)]

    async def test_all_sources_fail(self):
        resolver = build_resolver(
            ml=FakeMLClient(error="timeout"),
            history=FakeHistoryProvider(error="no data"),
            snapshot=FakeQuoteProvider(error="no key", source="Finnhub"),
            live_quote=FakeQuoteProvider(error="quote down"),
        )
        with pytest.raises(DataUnavailableError) as exc_info:
            await resolver.resolve(PredictionRequest(ticker="AAPL"))

        errors = exc_info.value.details["errors"]
        assert len(errors) == 4
        assert [e.split(":")[0] for e in errors[1:]] == [
            "ml_service",
            "history_regression",
            "snapshot_regression",
        ]

    async def test_blank_ticker_rejected(self):
        with pytest.raises(ValidationError):
            await build_resolver().execute(PredictionRequest(ticker="   "))

    def test_requires_a_strategy(self):
        with pytest.raises(ValueError):
            PredictionResolver(strategies=[])


class TestCachingAndBatch:
    async def test_cached_within_ttl(self, fake_clock):
        history = FakeHistoryProvider(closes=[100.0 + i for i in range(20)])
        cache = ResponseCache(ttl_seconds=60, memory=TTLCache(ttl_seconds=60, clock=fake_clock))
        resolver = build_resolver(history=history, cache=cache)
        request = PredictionRequest(ticker="AAPL", use_ml=False)

        first = await resolver.execute(request)
        second = await resolver.execute(request)
        assert first == second
        assert len(history.calls) == 1

        fake_clock.advance(61)
        await resolver.execute(request)
        assert len(history.calls) == 2

    async def test_cache_key_includes_options(self, fake_clock):
        history = FakeHistoryProvider(closes=[100.0 + i for i in range(20)])
        cache = ResponseCache(ttl_seconds=60, memory=TTLCache(ttl_seconds=60, clock=fake_clock))
        resolver = build_resolver(history=history, cache=cache)

        await resolver.execute(PredictionRequest(ticker="AAPL", use_ml=False, lookback_days=30))
        await resolver.execute(PredictionRequest(ticker="AAPL", use_ml=False, lookback_days=90))
        assert len(history.calls) == 2

    async def test_predict_many_drops_failures(self):
        resolver = PredictionResolver(
            strategies=[
                SnapshotRegressionStrategy(
                    FakeQuoteProvider(prices={"AAPL": 150.0, "MSFT": 400.0}, source="Finnhub")
                )
            ]
        )
        results = await resolver.predict_many(["AAPL", "BAD", "MSFT"])

        assert [r.ticker for r in results] == ["AAPL", "MSFT"]

    async def test_health_check(self):
        assert await build_resolver().health_check() is True


class TestExtractPredictedClose:
    def test_predictions_take_precedence(self):
        assert extract_predicted_close(ML_ANALYSIS, ML_PREDICTIONS) == 112.0

    def test_falls_back_to_analysis_preview(self):
        assert extract_predicted_close(ML_ANALYSIS, {"predictions": []}) == 110.0

    def test_missing_everywhere(self):
        assert extract_predicted_close({"message": "ok"}, {"predictions": []}) is None
