"""
Indicator Engine Service

CONTRACT:
    Input:  PriceHistory (date-ordered OHLCV points)
    Output: IndicatorOutput

RESPONSIBILITIES:
    - Calculate SMA 20/50/200, EMA 12/26, RSI 14, MACD, Bollinger Bands
    - Classify trend direction and strength
    - Report the recent support/resistance range

PURE PYTHON - Uses NumPy for calculations.
Short series yield None for the affected indicator, never an error.
"""

from stocksight.services.indicators.interface import IndicatorServiceInterface
from stocksight.services.indicators.service import IndicatorService, get_indicator_service

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "get_indicator_service",
]
