"""
Linear Regression Forecaster

Least-squares trend fit over the most recent closes, projected forward a
fixed number of periods. Used whenever the ML prediction service cannot
answer.

Degenerate inputs (a single close from a quote snapshot, a flat series)
produce finite, low-information output, never NaN.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from stocksight.schemas.prediction import (
    SignalType,
    RiskLevel,
    FactorImpact,
    PredictionFactor,
    MAX_CONFIDENCE,
)
from stocksight.services.indicators.calculations import population_std

# Regression window and projection horizon
WINDOW_SIZE = 20
FORECAST_HORIZON = 5

# Signal thresholds (% change across the window)
SIGNAL_CHANGE_PERCENT = 5.0

# Risk thresholds (volatility / price)
HIGH_VOLATILITY = 0.03
LOW_VOLATILITY = 0.015

# Volume impact thresholds (trailing / overall average)
VOLUME_TRAILING_PERIODS = 5
VOLUME_SURGE_RATIO = 1.2
VOLUME_DRY_RATIO = 0.8

CONFIDENCE_SCALE = 0.9
MOMENTUM_SLOPE = 1.0

# Factor weights (illustrative, not fitted)
FACTOR_WEIGHTS = {
    "Technical Analysis": 0.35,
    "Market Sentiment": 0.25,
    "Volume Analysis": 0.20,
    "Trend Momentum": 0.20,
}


@dataclass
class RegressionFit:
    """Ordinary least-squares line over indices 0..n-1."""

    slope: float
    intercept: float
    n: int

    def project(self, periods_ahead: int = FORECAST_HORIZON) -> float:
        return self.slope * (self.n + periods_ahead) + self.intercept


@dataclass
class TechnicalForecast:
    """Everything the forecaster derives from one price window."""

    fit: RegressionFit
    current_price: float
    predicted_price: float
    volatility: float
    avg_volatility: float
    price_change_pct: float
    trend_consistency: float
    confidence: float
    signal: SignalType
    risk: RiskLevel
    volume_impact: FactorImpact
    factors: list[PredictionFactor] = field(default_factory=list)

    @property
    def slope(self) -> float:
        return self.fit.slope


def fit_line(prices: Sequence[float]) -> RegressionFit:
    """Fit y = slope * x + intercept. A single point fits a flat line."""
    y = np.asarray(prices, dtype=float)
    n = len(y)
    if n == 0:
        raise ValueError("cannot fit a regression line to an empty series")

    x = np.arange(n, dtype=float)
    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))

    denominator = n * sum_x2 - sum_x * sum_x
    slope = 0.0 if denominator == 0 else (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    return RegressionFit(slope=slope, intercept=intercept, n=n)


def trend_consistency(prices: Sequence[float], slope: float) -> float:
    """
    Fraction of points moving with the slope's direction.

    The first point always counts. A zero slope counts non-increasing moves.
    A window of fewer than two points has no observable trend and scores 0.
    """
    n = len(prices)
    if n < 2:
        return 0.0

    consistent = 1
    for prev, curr in zip(prices, prices[1:]):
        if slope > 0:
            consistent += curr >= prev
        else:
            consistent += curr <= prev
    return consistent / n


def classify_risk(avg_volatility: float) -> RiskLevel:
    """HIGH above 3% relative volatility, LOW below 1.5%."""
    if avg_volatility > HIGH_VOLATILITY:
        return RiskLevel.HIGH
    if avg_volatility < LOW_VOLATILITY:
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


def classify_signal(price_change_pct: float, slope: float) -> SignalType:
    """BUY on a >5% rise with positive slope, SELL on a >5% fall with negative slope."""
    if price_change_pct > SIGNAL_CHANGE_PERCENT and slope > 0:
        return SignalType.BUY
    if price_change_pct < -SIGNAL_CHANGE_PERCENT and slope < 0:
        return SignalType.SELL
    return SignalType.HOLD


def volume_impact(volumes: Sequence[float]) -> FactorImpact:
    """Compare the trailing average volume against the overall average."""
    if not volumes:
        return FactorImpact.NEUTRAL

    data = np.asarray(volumes, dtype=float)
    avg_volume = float(np.mean(data))
    recent_volume = float(np.mean(data[-VOLUME_TRAILING_PERIODS:]))

    if recent_volume > avg_volume * VOLUME_SURGE_RATIO:
        return FactorImpact.POSITIVE
    if recent_volume < avg_volume * VOLUME_DRY_RATIO:
        return FactorImpact.NEGATIVE
    return FactorImpact.NEUTRAL


def _sign_impact(value: float) -> FactorImpact:
    if value > 0:
        return FactorImpact.POSITIVE
    if value < 0:
        return FactorImpact.NEGATIVE
    return FactorImpact.NEUTRAL


def build_factors(
    slope: float, price_change_pct: float, volume: FactorImpact
) -> list[PredictionFactor]:
    """Fixed-weight factor list; weights sum to 1.0."""
    impacts = {
        "Technical Analysis": _sign_impact(slope),
        "Market Sentiment": _sign_impact(price_change_pct),
        "Volume Analysis": volume,
        "Trend Momentum": (
            FactorImpact.POSITIVE if abs(slope) > MOMENTUM_SLOPE else FactorImpact.NEUTRAL
        ),
    }
    return [
        PredictionFactor(name=name, weight=weight, impact=impacts[name])
        for name, weight in FACTOR_WEIGHTS.items()
    ]


def forecast(
    closes: Sequence[float],
    volumes: Optional[Sequence[float]] = None,
    current_price: Optional[float] = None,
    window_size: int = WINDOW_SIZE,
) -> TechnicalForecast:
    """
    Forecast the price `FORECAST_HORIZON` periods past the last close.

    Args:
        closes: Date-ordered closing prices (at least one)
        volumes: Volumes for the same history (optional)
        current_price: Live price; defaults to the last close
        window_size: Number of trailing closes to fit

    Returns:
        TechnicalForecast with signal, risk, confidence and factors
    """
    if not closes:
        raise ValueError("forecast needs at least one closing price")

    n = min(len(closes), window_size)
    window = [float(p) for p in list(closes)[-n:]]
    current = float(current_price) if current_price else window[-1]

    fit = fit_line(window)
    predicted = fit.project(FORECAST_HORIZON)

    volatility = population_std(window)
    avg_volatility = volatility / current if current > 0 else 0.0

    base = window[0]
    price_change_pct = (current - base) / base * 100 if base > 0 else 0.0

    consistency = trend_consistency(window, fit.slope)
    confidence = round(min(consistency * CONFIDENCE_SCALE, MAX_CONFIDENCE), 2)

    volume = volume_impact(list(volumes) if volumes else [])

    return TechnicalForecast(
        fit=fit,
        current_price=current,
        predicted_price=predicted,
        volatility=volatility,
        avg_volatility=avg_volatility,
        price_change_pct=price_change_pct,
        trend_consistency=consistency,
        confidence=confidence,
        signal=classify_signal(price_change_pct, fit.slope),
        risk=classify_risk(avg_volatility),
        volume_impact=volume,
        factors=build_factors(fit.slope, price_change_pct, volume),
    )
