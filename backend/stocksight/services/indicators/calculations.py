"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators over a
date-ordered closing-price sequence.

Every function returns None when the sequence is shorter than the
indicator needs. All math is deterministic.
"""

from typing import Optional, Sequence
from dataclasses import dataclass

import numpy as np

from stocksight.schemas.indicators import MACDSignalMode


@dataclass(frozen=True)
class MACDValues:
    """Latest MACD line, signal line and histogram."""

    macd: Optional[float]
    signal: Optional[float]
    histogram: Optional[float]


@dataclass(frozen=True)
class BollingerValues:
    """Latest Bollinger Bands."""

    upper: Optional[float]
    middle: Optional[float]
    lower: Optional[float]


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(values: Sequence[float], period: int) -> Optional[float]:
    """Simple Moving Average of the last `period` values."""
    data = _as_array(values)
    if period <= 0 or len(data) < period:
        return None
    return float(np.mean(data[-period:]))


def ema_series(values: Sequence[float], period: int) -> np.ndarray:
    """Exponential Moving Average series, seeded with the SMA of the first `period` values."""
    data = _as_array(values)
    result = np.full(len(data), np.nan)
    if period <= 0 or len(data) < period:
        return result

    multiplier = 2 / (period + 1)

    # Start with SMA
    result[period - 1] = np.mean(data[:period])

    for i in range(period, len(data)):
        result[i] = (data[i] - result[i - 1]) * multiplier + result[i - 1]

    return result


def ema(values: Sequence[float], period: int) -> Optional[float]:
    """Latest Exponential Moving Average value."""
    series = ema_series(values, period)
    if len(series) == 0 or np.isnan(series[-1]):
        return None
    return float(series[-1])


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(values: Sequence[float], period: int = 14) -> Optional[float]:
    """
    Relative Strength Index over the last `period + 1` closes.

    Uses simple (not Wilder-smoothed) averages of gains and losses.
    A window with no losses uses rs = 100, giving an RSI just under 100.
    """
    data = _as_array(values)
    if period <= 0 or len(data) < period + 1:
        return None

    deltas = np.diff(data[-(period + 1):])
    gains = float(np.sum(deltas[deltas > 0]))
    losses = float(-np.sum(deltas[deltas < 0]))

    avg_gain = gains / period
    avg_loss = losses / period

    rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
    mode: MACDSignalMode = MACDSignalMode.SERIES,
) -> MACDValues:
    """
    MACD (Moving Average Convergence Divergence).

    SERIES mode: the signal line is the EMA of the MACD series over time,
    available once `slow_period + signal_period - 1` closes exist.

    LEGACY mode: the signal line is the EMA applied to the last
    `slow_period` closes with the MACD value appended.
    """
    data = _as_array(values)
    fast = ema(data, fast_period)
    slow = ema(data, slow_period)

    if fast is None or slow is None:
        return MACDValues(macd=None, signal=None, histogram=None)

    macd_value = fast - slow

    if mode == MACDSignalMode.LEGACY:
        signal_input = np.append(data[-slow_period:], macd_value)
        signal_value = ema(signal_input, signal_period)
    else:
        macd_line = ema_series(data, fast_period) - ema_series(data, slow_period)
        signal_value = ema(macd_line[slow_period - 1 :], signal_period)

    if signal_value is None:
        return MACDValues(macd=macd_value, signal=None, histogram=None)

    return MACDValues(
        macd=macd_value,
        signal=signal_value,
        histogram=macd_value - signal_value,
    )


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0); 0 for an empty sequence."""
    data = _as_array(values)
    if len(data) == 0:
        return 0.0
    return float(np.std(data))


def bollinger_bands(
    values: Sequence[float], period: int = 20, std_dev: float = 2.0
) -> BollingerValues:
    """Bollinger Bands: SMA(period) +/- std_dev * population std of the last `period` closes."""
    data = _as_array(values)
    middle = sma(data, period)
    if middle is None:
        return BollingerValues(upper=None, middle=None, lower=None)

    band = std_dev * population_std(data[-period:])

    return BollingerValues(
        upper=middle + band,
        middle=middle,
        lower=middle - band,
    )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def round_or_none(value: Optional[float], digits: int = 2) -> Optional[float]:
    """Round a value, passing None (and NaN) through as None."""
    if value is None or np.isnan(value):
        return None
    return round(float(value), digits)
