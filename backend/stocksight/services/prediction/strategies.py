"""
Prediction Strategies

Each strategy asks one provider for a forecast and projects the provider's
native response into a PredictionResult. Strategies raise on failure; the
resolver decides what happens next.

Order used by the resolver:
    1. MLStrategy                  remote LSTM service (analyze + predictions)
    2. HistoryRegressionStrategy   linear regression over Yahoo history
    3. SnapshotRegressionStrategy  linear regression over a Finnhub snapshot
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from stocksight.schemas.market import PriceHistory, QuoteSnapshot
from stocksight.schemas.prediction import (
    SignalType,
    RiskLevel,
    FactorImpact,
    ModelUsed,
    PredictionFactor,
    PredictionResult,
)
from stocksight.services.base import ExternalAPIError
from stocksight.services.ml.client import MLPredictionClient
from stocksight.services.prediction.regression import TechnicalForecast, forecast

logger = logging.getLogger(__name__)

HistoryFetcher = Callable[[str, int], Awaitable[PriceHistory]]
QuoteFetcher = Callable[[str], Awaitable[QuoteSnapshot]]

# Final normalization thresholds (% predicted change vs current price)
SIGNAL_CHANGE_PERCENT = 5.0
HIGH_RISK_CHANGE_PERCENT = 10.0
LOW_RISK_CHANGE_PERCENT = 3.0

ML_CONFIDENCE = 0.82
ML_FACTOR_WEIGHT = 0.4


class StrategySkipped(Exception):
    """The strategy is disabled for this request."""
    pass


@dataclass
class PredictionContext:
    """Per-request state shared by the strategies."""

    ticker: str
    use_ml: bool = True
    lookback_days: int = 60
    current_price: Optional[float] = None
    current_price_source: Optional[str] = None
    errors: list[str] = field(default_factory=list)


def price_change_percent(predicted: float, current: float) -> float:
    return (predicted - current) / current * 100 if current > 0 else 0.0


def signal_from_change(change_pct: float) -> SignalType:
    if change_pct > SIGNAL_CHANGE_PERCENT:
        return SignalType.BUY
    if change_pct < -SIGNAL_CHANGE_PERCENT:
        return SignalType.SELL
    return SignalType.HOLD


def risk_from_change(change_pct: float) -> RiskLevel:
    if abs(change_pct) > HIGH_RISK_CHANGE_PERCENT:
        return RiskLevel.HIGH
    if abs(change_pct) < LOW_RISK_CHANGE_PERCENT:
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


# =============================================================================
# PROJECTIONS (provider response -> PredictionResult)
# =============================================================================


def extract_predicted_close(
    analysis: dict[str, Any], predictions: dict[str, Any]
) -> Optional[float]:
    """
    Predicted close from the ML payloads.

    Precedence: predictions.predictions[0].Predicted_Close, then
    analysis.data_preview[0].Predicted_Close.
    """
    for payload, key in ((predictions, "predictions"), (analysis, "data_preview")):
        rows = payload.get(key) if isinstance(payload, dict) else None
        if rows and isinstance(rows, list) and isinstance(rows[0], dict):
            value = rows[0].get("Predicted_Close")
            if value:
                return float(value)
    return None


def project_ml_prediction(
    ticker: str,
    current_price: float,
    predicted_price: float,
    analysis_message: Optional[str],
    chart_url: Optional[str],
) -> PredictionResult:
    """ML forecasts carry no signal of their own: derive it from the predicted change."""
    change = price_change_percent(predicted_price, current_price)
    return PredictionResult(
        ticker=ticker,
        current_price=current_price,
        predicted_price=predicted_price,
        price_change_pct=change,
        signal=signal_from_change(change),
        risk=risk_from_change(change),
        confidence=ML_CONFIDENCE,
        model_used=ModelUsed.ML_LSTM,
        factors=[
            PredictionFactor(
                name="ML Model Prediction",
                weight=ML_FACTOR_WEIGHT,
                impact=FactorImpact.POSITIVE if change > 0 else FactorImpact.NEGATIVE,
            )
        ],
        source="ML Service",
        chart_url=chart_url,
        analysis_message=analysis_message,
    )


def project_technical_forecast(
    ticker: str, result: TechnicalForecast, source: str
) -> PredictionResult:
    """Regression forecasts keep their own signal, risk, confidence and factors."""
    return PredictionResult(
        ticker=ticker,
        current_price=result.current_price,
        predicted_price=result.predicted_price,
        price_change_pct=price_change_percent(result.predicted_price, result.current_price),
        signal=result.signal,
        risk=result.risk,
        confidence=result.confidence,
        model_used=ModelUsed.LINEAR_REGRESSION,
        factors=result.factors,
        source=source,
    )


# =============================================================================
# STRATEGIES
# =============================================================================


class PredictionStrategy(ABC):
    """One step of the fallback chain."""

    name: str = "strategy"
    model: ModelUsed = ModelUsed.LINEAR_REGRESSION

    @abstractmethod
    async def run(self, ctx: PredictionContext) -> PredictionResult:
        """
        Produce a prediction or raise.

        Raises:
            StrategySkipped: strategy disabled for this request
            ExternalAPIError: provider failed or returned a partial result
        """
        pass


class MLStrategy(PredictionStrategy):
    """Remote LSTM service. Both calls must succeed."""

    name = "ml_service"
    model = ModelUsed.ML_LSTM

    def __init__(self, client: MLPredictionClient):
        self._client = client

    async def run(self, ctx: PredictionContext) -> PredictionResult:
        if not ctx.use_ml:
            raise StrategySkipped("ML predictions disabled for this request")

        analysis, predictions = await asyncio.gather(
            self._client.analyze_stock(ctx.ticker),
            self._client.get_predictions(ctx.ticker),
            return_exceptions=True,
        )

        failures = [
            f"{label}: {getattr(outcome, 'message', outcome)}"
            for label, outcome in (("analyze", analysis), ("predictions", predictions))
            if isinstance(outcome, BaseException) or not outcome
        ]
        if failures:
            raise ExternalAPIError("ML Service", "; ".join(failures))

        predicted = extract_predicted_close(analysis, predictions)
        if predicted is None:
            raise ExternalAPIError("ML Service", "response contained no Predicted_Close")

        if ctx.current_price is None:
            raise ExternalAPIError("ML Service", "current price unavailable to normalize the ML forecast")

        return project_ml_prediction(
            ticker=ctx.ticker,
            current_price=ctx.current_price,
            predicted_price=predicted,
            analysis_message=analysis.get("message"),
            chart_url=self._client.chart_url(ctx.ticker),
        )


class HistoryRegressionStrategy(PredictionStrategy):
    """Linear regression over daily history from the primary provider."""

    name = "history_regression"

    def __init__(self, fetch_history: HistoryFetcher):
        self._fetch_history = fetch_history

    async def run(self, ctx: PredictionContext) -> PredictionResult:
        history = await self._fetch_history(ctx.ticker, ctx.lookback_days)

        if ctx.current_price is None:
            ctx.current_price = history.last_close
            ctx.current_price_source = history.source

        result = forecast(
            history.closes,
            volumes=history.volumes,
            current_price=ctx.current_price,
        )
        return project_technical_forecast(ctx.ticker, result, history.source)


class SnapshotRegressionStrategy(PredictionStrategy):
    """
    Regression over a single quote snapshot from the secondary provider.

    The window has one point: slope 0, zero volatility, zero confidence.
    """

    name = "snapshot_regression"

    def __init__(self, fetch_quote: QuoteFetcher):
        self._fetch_quote = fetch_quote

    async def run(self, ctx: PredictionContext) -> PredictionResult:
        snapshot = await self._fetch_quote(ctx.ticker)

        if ctx.current_price is None:
            ctx.current_price = snapshot.price
            ctx.current_price_source = snapshot.source

        result = forecast(
            [snapshot.price],
            volumes=[snapshot.volume] if snapshot.volume else None,
            current_price=ctx.current_price,
        )
        return project_technical_forecast(ctx.ticker, result, snapshot.source)
