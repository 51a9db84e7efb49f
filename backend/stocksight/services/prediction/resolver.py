"""
Prediction Resolver

Runs the ordered fallback chain for a ticker and normalizes whichever
strategy answered first into a PredictionResponse.

Fallback policy is data: a list of strategies tried in order by one loop.
Field precedence between the strategy's own values and the values
recomputed from predicted vs current price is an explicit table.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from stocksight.core.config import settings
from stocksight.schemas.prediction import (
    ModelUsed,
    SignalType,
    PredictionRequest,
    PredictionResponse,
    PredictionResult,
    MAX_CONFIDENCE,
)
from stocksight.services.base import DataUnavailableError, ServiceError, ValidationError
from stocksight.services.cache.redis_client import ResponseCache, get_response_cache
from stocksight.services.data_ingestion.yahoo_adapter import (
    fetch_yahoo_history,
    fetch_yahoo_quote,
)
from stocksight.services.data_ingestion.finnhub_adapter import get_finnhub_client
from stocksight.services.ml.client import get_ml_client
from stocksight.services.prediction.interface import PredictionServiceInterface
from stocksight.services.prediction.strategies import (
    PredictionContext,
    PredictionStrategy,
    StrategySkipped,
    MLStrategy,
    HistoryRegressionStrategy,
    SnapshotRegressionStrategy,
    QuoteFetcher,
    price_change_percent,
    signal_from_change,
    risk_from_change,
)

logger = logging.getLogger(__name__)

TIMEFRAME_LABEL = "1 week"

# "model": keep the strategy's value, "recomputed": derive from predicted vs current
FIELD_PRECEDENCE = {
    ModelUsed.ML_LSTM: {"signal": "recomputed", "risk": "recomputed"},
    ModelUsed.LINEAR_REGRESSION: {"signal": "model", "risk": "model"},
}


@dataclass
class PredictionResolution:
    """Outcome of one pass through the fallback chain."""

    response: PredictionResponse
    strategy: str
    errors: list[str] = field(default_factory=list)


def build_recommendation(
    result: PredictionResult, change_pct: float, signal: SignalType
) -> str:
    if result.model_used == ModelUsed.ML_LSTM:
        direction = "increase" if change_pct > 0 else "decrease"
        return (
            f"Based on ML analysis, {result.ticker} is predicted to {direction} "
            f"by {abs(change_pct):.1f}%."
        )
    return f"Based on technical analysis, the signal is {signal.value}."


def normalize_prediction(
    result: PredictionResult,
    ml_error: Optional[str] = None,
) -> PredictionResponse:
    """Project a strategy's result into the API response."""
    change_pct = price_change_percent(result.predicted_price, result.current_price)
    precedence = FIELD_PRECEDENCE[result.model_used]

    signal = result.signal if precedence["signal"] == "model" else signal_from_change(change_pct)
    risk = result.risk if precedence["risk"] == "model" else risk_from_change(change_pct)
    ml_available = result.model_used == ModelUsed.ML_LSTM

    return PredictionResponse(
        ticker=result.ticker,
        predicted_price=round(result.predicted_price, 2),
        current_price=round(result.current_price, 2),
        price_change=round(change_pct, 2),
        signal=signal,
        risk=risk,
        confidence=max(0.0, min(result.confidence, MAX_CONFIDENCE)),
        timeframe=TIMEFRAME_LABEL,
        model=result.model_used,
        chart_url=result.chart_url,
        factors=result.factors,
        recommendation=build_recommendation(result, change_pct, signal),
        ml_available=ml_available,
        ml_error=None if ml_available else ml_error,
        source=result.source,
    )


class PredictionResolver(PredictionServiceInterface):
    """
    Multi-source prediction service.

    Args:
        strategies: Ordered fallback chain
        fetch_current_quote: Primary live-quote lookup for the current price
        cache: Response cache (None disables caching)
    """

    def __init__(
        self,
        strategies: list[PredictionStrategy],
        fetch_current_quote: Optional[QuoteFetcher] = None,
        cache: Optional[ResponseCache] = None,
    ):
        if not strategies:
            raise ValueError("PredictionResolver needs at least one strategy")
        self._strategies = strategies
        self._fetch_current_quote = fetch_current_quote
        self._cache = cache

    @property
    def name(self) -> str:
        return "PredictionService"

    async def execute(self, input_data: PredictionRequest) -> PredictionResponse:
        """Resolve a prediction, serving from cache inside the TTL window."""
        ticker = input_data.ticker.upper().strip()
        if not ticker:
            raise ValidationError(self.name, "Ticker symbol is required")

        cache_key = (
            f"prediction:{ticker}:{'ml' if input_data.use_ml else 'ta'}:{input_data.lookback_days}"
        )

        if self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached:
                logger.debug(f"Prediction cache hit for {ticker}")
                return PredictionResponse.model_validate(cached)

        resolution = await self.resolve(input_data)

        if self._cache is not None:
            await self._cache.set(cache_key, resolution.response.model_dump(mode="json"))

        return resolution.response

    async def resolve(self, request: PredictionRequest) -> PredictionResolution:
        """
        Try each strategy in order; the first success wins.

        Raises:
            DataUnavailableError: every strategy failed
        """
        ctx = PredictionContext(
            ticker=request.ticker.upper().strip(),
            use_ml=request.use_ml,
            lookback_days=request.lookback_days,
        )
        await self._resolve_current_price(ctx)

        ml_error: Optional[str] = None

        for strategy in self._strategies:
            try:
                result = await strategy.run(ctx)
            except StrategySkipped as e:
                logger.debug(f"{strategy.name} skipped for {ctx.ticker}: {e}")
                continue
            except ServiceError as e:
                message = e.message
            except Exception as e:
                message = str(e) or type(e).__name__
            else:
                logger.info(
                    f"Prediction for {ctx.ticker} via {strategy.name} "
                    f"({result.model_used.value}, source: {result.source})"
                )
                return PredictionResolution(
                    response=normalize_prediction(result, ml_error=ml_error),
                    strategy=strategy.name,
                    errors=ctx.errors,
                )

            ctx.errors.append(f"{strategy.name}: {message}")
            if strategy.model == ModelUsed.ML_LSTM:
                ml_error = message
                logger.info(f"ML prediction unavailable for {ctx.ticker}, using technical analysis: {message}")
            else:
                logger.warning(f"{strategy.name} failed for {ctx.ticker}: {message}")

        logger.error(f"All prediction sources exhausted for {ctx.ticker}")
        raise DataUnavailableError(
            self.name,
            f"No prediction available for {ctx.ticker}: all data sources failed",
            details={"errors": ctx.errors},
        )

    async def _resolve_current_price(self, ctx: PredictionContext) -> None:
        if self._fetch_current_quote is None:
            return
        try:
            quote = await self._fetch_current_quote(ctx.ticker)
        except Exception as e:
            logger.info(f"Live quote unavailable for {ctx.ticker}: {e}")
            ctx.errors.append(f"current_quote: {getattr(e, 'message', e)}")
            return
        ctx.current_price = quote.price
        ctx.current_price_source = quote.source

    async def predict_many(
        self, tickers: list[str], use_ml: bool = True, lookback_days: int = 60
    ) -> list[PredictionResponse]:
        """Predict several tickers concurrently, dropping the ones that fail."""
        async def predict_one(ticker: str) -> PredictionResponse:
            request = PredictionRequest(ticker=ticker, use_ml=use_ml, lookback_days=lookback_days)
            return await self.execute(request)

        results = await asyncio.gather(
            *[predict_one(t) for t in tickers], return_exceptions=True
        )

        predictions = []
        for ticker, result in zip(tickers, results):
            if isinstance(result, PredictionResponse):
                predictions.append(result)
            else:
                logger.warning(f"Failed to fetch prediction for {ticker}: {result}")
        return predictions

    async def health_check(self) -> bool:
        """Local regression fallback is always available."""
        return True


def build_default_strategies() -> list[PredictionStrategy]:
    """ML service -> Yahoo history regression -> Finnhub snapshot regression."""
    strategies: list[PredictionStrategy] = []
    if settings.enable_ml_predictions:
        strategies.append(MLStrategy(get_ml_client()))
    strategies.append(
        HistoryRegressionStrategy(
            lambda ticker, days: fetch_yahoo_history(ticker, days=days)
        )
    )
    strategies.append(SnapshotRegressionStrategy(get_finnhub_client().get_quote))
    return strategies


# Singleton instance
_resolver_instance: Optional[PredictionResolver] = None


def get_prediction_resolver() -> PredictionResolver:
    """Get or create the prediction resolver."""
    global _resolver_instance
    if _resolver_instance is None:
        _resolver_instance = PredictionResolver(
            strategies=build_default_strategies(),
            fetch_current_quote=fetch_yahoo_quote,
            cache=get_response_cache(),
        )
    return _resolver_instance
