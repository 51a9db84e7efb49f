"""
CONTRACT 1: Market Data

Normalized shapes for data returned by the quote/history providers
(Yahoo Finance, Finnhub). Consumed by the Indicator Engine and the
Prediction Resolver.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class Interval(str, Enum):
    D1 = "1d"
    W1 = "1wk"
    MO1 = "1mo"


class HistoryPeriod(str, Enum):
    W1 = "1w"
    MO1 = "1mo"
    MO3 = "3mo"
    Y1 = "1y"
    Y5 = "5y"


# Lookback window in days and bar interval for each chart period
HISTORY_PERIODS = {
    HistoryPeriod.W1: (7, Interval.D1),
    HistoryPeriod.MO1: (30, Interval.D1),
    HistoryPeriod.MO3: (90, Interval.D1),
    HistoryPeriod.Y1: (365, Interval.D1),
    HistoryPeriod.Y5: (5 * 365, Interval.W1),
}


# =============================================================================
# PRICE DATA
# =============================================================================


class PricePoint(BaseModel):
    """Single OHLCV bar."""

    date: datetime
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: int = Field(default=0, ge=0)

    class Config:
        frozen = True


class PriceHistory(BaseModel):
    """Date-ordered OHLCV series for a single ticker."""

    ticker: str
    interval: Interval = Interval.D1
    points: list[PricePoint] = Field(..., min_length=1)
    source: str

    @field_validator("points")
    @classmethod
    def _ascending(cls, points: list[PricePoint]) -> list[PricePoint]:
        for prev, curr in zip(points, points[1:]):
            if curr.date < prev.date:
                raise ValueError("price points must be ordered by date ascending")
        return points

    @property
    def closes(self) -> list[float]:
        return [p.close for p in self.points]

    @property
    def volumes(self) -> list[int]:
        return [p.volume for p in self.points]

    @property
    def last_close(self) -> float:
        return self.points[-1].close


class QuoteSnapshot(BaseModel):
    """
    Current-quote snapshot.

    The secondary provider (Finnhub) only offers this shape: no history.
    """

    ticker: str
    price: float = Field(..., gt=0)
    change: float = 0.0
    change_percent: float = 0.0
    previous_close: Optional[float] = None
    volume: int = Field(default=0, ge=0)
    name: Optional[str] = None
    source: str
    timestamp: Optional[datetime] = None


class HistoryBar(BaseModel):
    """Chart-ready bar (date as YYYY-MM-DD, prices rounded to cents)."""

    date: str
    open: float
    high: float
    low: float
    close: float
    volume: int
