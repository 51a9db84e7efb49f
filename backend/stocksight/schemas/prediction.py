"""
CONTRACT 3: Prediction Engine

Input: ticker + PredictionRequest options
Output: PredictionResponse

PredictionResult is the internal, provider-neutral projection of whichever
source produced the forecast. PredictionResponse is the normalized API shape.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class FactorImpact(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class ModelUsed(str, Enum):
    ML_LSTM = "ML_LSTM"
    LINEAR_REGRESSION = "LINEAR_REGRESSION"


MAX_CONFIDENCE = 0.85


# =============================================================================
# INPUT
# =============================================================================


class PredictionRequest(BaseModel):
    """Options for a single prediction."""

    ticker: str = Field(..., min_length=1, max_length=20)
    use_ml: bool = True
    lookback_days: int = Field(default=60, ge=5, le=365)


class MLAnalyzeRequest(BaseModel):
    """Body of a direct ML analysis request."""

    ticker: str = Field(..., min_length=1, max_length=20)


# =============================================================================
# OUTPUT
# =============================================================================


class PredictionFactor(BaseModel):
    """Weighted factor contributing to a prediction."""

    name: str
    weight: float = Field(..., ge=0, le=1)
    impact: FactorImpact


class PredictionResult(BaseModel):
    """Provider-neutral prediction produced by one fallback strategy."""

    ticker: str
    current_price: float
    predicted_price: float
    price_change_pct: float
    signal: SignalType
    risk: RiskLevel
    confidence: float = Field(..., ge=0, le=MAX_CONFIDENCE)
    model_used: ModelUsed
    factors: list[PredictionFactor] = Field(default_factory=list)
    source: str
    chart_url: Optional[str] = None
    analysis_message: Optional[str] = None


class PredictionResponse(BaseModel):
    """
    Normalized prediction returned by the API.
    Returned by: Prediction Resolver
    Consumed by: Dashboard prediction feed, stock detail page
    """

    ticker: str
    predicted_price: float
    current_price: float
    price_change: float = Field(..., description="Predicted change vs current, in %")
    signal: SignalType
    risk: RiskLevel
    confidence: float = Field(..., ge=0, le=MAX_CONFIDENCE)
    timeframe: str = "1 week"
    model: ModelUsed
    chart_url: Optional[str] = None
    factors: list[PredictionFactor]
    recommendation: str
    ml_available: bool
    ml_error: Optional[str] = None
    source: str

    class Config:
        json_schema_extra = {
            "example": {
                "ticker": "MSFT",
                "predicted_price": 421.37,
                "current_price": 415.1,
                "price_change": 1.51,
                "signal": "HOLD",
                "risk": "LOW",
                "confidence": 0.58,
                "timeframe": "1 week",
                "model": "LINEAR_REGRESSION",
                "chart_url": None,
                "factors": [
                    {"name": "Technical Analysis", "weight": 0.35, "impact": "POSITIVE"},
                    {"name": "Market Sentiment", "weight": 0.25, "impact": "POSITIVE"},
                    {"name": "Volume Analysis", "weight": 0.2, "impact": "NEUTRAL"},
                    {"name": "Trend Momentum", "weight": 0.2, "impact": "NEUTRAL"},
                ],
                "recommendation": "Based on technical analysis, the signal is HOLD.",
                "ml_available": False,
                "ml_error": "ML service unavailable",
                "source": "Yahoo Finance",
            }
        }
