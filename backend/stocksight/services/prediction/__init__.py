"""
Prediction Service

CONTRACT:
    Input:  PredictionRequest (ticker, use_ml, lookback_days)
    Output: PredictionResponse

FALLBACK CHAIN:
    1. Remote ML service (analyze + get predictions, both required)
    2. Linear regression over Yahoo Finance daily history
    3. Linear regression over a Finnhub quote snapshot (single point)

Failure of every data source raises DataUnavailableError.
"""

from stocksight.services.prediction.interface import PredictionServiceInterface
from stocksight.services.prediction.regression import TechnicalForecast, forecast
from stocksight.services.prediction.strategies import (
    PredictionContext,
    PredictionStrategy,
    MLStrategy,
    HistoryRegressionStrategy,
    SnapshotRegressionStrategy,
)
from stocksight.services.prediction.resolver import (
    PredictionResolver,
    PredictionResolution,
    normalize_prediction,
    get_prediction_resolver,
)

__all__ = [
    "PredictionServiceInterface",
    "TechnicalForecast",
    "forecast",
    "PredictionContext",
    "PredictionStrategy",
    "MLStrategy",
    "HistoryRegressionStrategy",
    "SnapshotRegressionStrategy",
    "PredictionResolver",
    "PredictionResolution",
    "normalize_prediction",
    "get_prediction_resolver",
]
