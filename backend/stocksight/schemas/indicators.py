"""
CONTRACT 2: Indicator Engine

Input: PriceHistory
Output: IndicatorOutput

Every indicator is optional: a series shorter than the indicator's
period yields None ("unavailable") instead of an error.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class TrendDirection(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class TrendStrength(str, Enum):
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"


class MACDSignalMode(str, Enum):
    SERIES = "series"
    LEGACY = "legacy"


# =============================================================================
# OUTPUT: Indicator Components
# =============================================================================


class MACDData(BaseModel):
    """MACD indicator values."""

    macd: Optional[float] = None
    signal: Optional[float] = None
    histogram: Optional[float] = None


class BollingerBandsData(BaseModel):
    """Bollinger Bands values."""

    upper: Optional[float] = None
    middle: Optional[float] = None
    lower: Optional[float] = None


class IndicatorSet(BaseModel):
    """Latest value of each indicator over the closing-price series."""

    sma20: Optional[float] = None
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    ema12: Optional[float] = None
    ema26: Optional[float] = None
    rsi: Optional[float] = Field(default=None, ge=0, le=100)
    macd: MACDData = Field(default_factory=MACDData)
    bollinger: BollingerBandsData = Field(default_factory=BollingerBandsData)


class TrendAnalysis(BaseModel):
    """Trend classification and recent price range."""

    trend: TrendDirection
    strength: TrendStrength
    support: float
    resistance: float


# =============================================================================
# OUTPUT: IndicatorOutput (Complete Response)
# =============================================================================


class IndicatorOutput(BaseModel):
    """
    Complete indicator analysis for a ticker.
    Returned by: Indicator Service
    Consumed by: Indicators API
    """

    ticker: str
    timestamp: datetime
    current_price: float
    data_points: int
    indicators: IndicatorSet
    analysis: TrendAnalysis
    source: str

    class Config:
        json_schema_extra = {
            "example": {
                "ticker": "AAPL",
                "timestamp": "2024-02-04T10:30:00",
                "current_price": 187.68,
                "data_points": 137,
                "indicators": {
                    "sma20": 190.12,
                    "sma50": 186.4,
                    "sma200": None,
                    "ema12": 188.9,
                    "ema26": 188.1,
                    "rsi": 44.2,
                    "macd": {"macd": 0.8, "signal": 1.1, "histogram": -0.3},
                    "bollinger": {"upper": 196.2, "middle": 190.12, "lower": 184.04},
                },
                "analysis": {
                    "trend": "NEUTRAL",
                    "strength": "MODERATE",
                    "support": 181.9,
                    "resistance": 196.9,
                },
                "source": "Yahoo Finance",
            }
        }
