"""
StockSight Schemas

Data contracts between services:

1. Market Data: PricePoint, PriceHistory, QuoteSnapshot
2. Indicator Engine: PriceHistory -> IndicatorOutput
3. Prediction Engine: PredictionRequest -> PredictionResponse
"""

from stocksight.schemas.market import (
    Interval,
    HistoryPeriod,
    HISTORY_PERIODS,
    PricePoint,
    PriceHistory,
    QuoteSnapshot,
    HistoryBar,
)
from stocksight.schemas.indicators import (
    TrendDirection,
    TrendStrength,
    MACDSignalMode,
    MACDData,
    BollingerBandsData,
    IndicatorSet,
    TrendAnalysis,
    IndicatorOutput,
)
from stocksight.schemas.prediction import (
    SignalType,
    RiskLevel,
    FactorImpact,
    ModelUsed,
    MAX_CONFIDENCE,
    PredictionRequest,
    MLAnalyzeRequest,
    PredictionFactor,
    PredictionResult,
    PredictionResponse,
)

__all__ = [
    # Market
    "Interval",
    "HistoryPeriod",
    "HISTORY_PERIODS",
    "PricePoint",
    "PriceHistory",
    "QuoteSnapshot",
    "HistoryBar",
    # Indicators
    "TrendDirection",
    "TrendStrength",
    "MACDSignalMode",
    "MACDData",
    "BollingerBandsData",
    "IndicatorSet",
    "TrendAnalysis",
    "IndicatorOutput",
    # Prediction
    "SignalType",
    "RiskLevel",
    "FactorImpact",
    "ModelUsed",
    "MAX_CONFIDENCE",
    "PredictionRequest",
    "MLAnalyzeRequest",
    "PredictionFactor",
    "PredictionResult",
    "PredictionResponse",
]
