"""
Trend / Support Classification

Derives trend direction, trend strength and the recent support/resistance
range from already-computed indicator values.
"""

from typing import Optional, Sequence

from stocksight.schemas.indicators import TrendDirection, TrendStrength

SUPPORT_LOOKBACK = 30


def classify_trend(
    price: float,
    sma20: Optional[float],
    sma50: Optional[float],
    sma200: Optional[float],
) -> TrendDirection:
    """
    BULLISH when price > SMA20 > SMA50 > SMA200, BEARISH when fully reversed.

    Any unavailable average means NEUTRAL.
    """
    if sma20 is None or sma50 is None or sma200 is None:
        return TrendDirection.NEUTRAL

    if price > sma20 > sma50 > sma200:
        return TrendDirection.BULLISH
    if price < sma20 < sma50 < sma200:
        return TrendDirection.BEARISH
    return TrendDirection.NEUTRAL


def classify_strength(rsi_value: Optional[float]) -> TrendStrength:
    """STRONG above 60, MODERATE in (40, 60], WEAK otherwise."""
    if rsi_value is None:
        return TrendStrength.WEAK
    if rsi_value > 60:
        return TrendStrength.STRONG
    if rsi_value > 40:
        return TrendStrength.MODERATE
    return TrendStrength.WEAK


def support_resistance(
    closes: Sequence[float], lookback: int = SUPPORT_LOOKBACK
) -> tuple[float, float]:
    """
    Returns: (support, resistance) as min/max of the last `lookback` closes.
    """
    if not closes:
        raise ValueError("support/resistance needs at least one close")
    recent = list(closes)[-lookback:]
    return min(recent), max(recent)
