"""
Indicator Engine Service Implementation

Calculates technical indicators from a closing-price series.
Pure Python/NumPy calculations.
"""

import logging
from datetime import datetime
from typing import Optional

from stocksight.core.config import settings
from stocksight.schemas.market import PriceHistory
from stocksight.schemas.indicators import (
    IndicatorOutput,
    IndicatorSet,
    MACDData,
    BollingerBandsData,
    MACDSignalMode,
    TrendAnalysis,
)
from stocksight.services.indicators.interface import IndicatorServiceInterface
from stocksight.services.indicators.calculations import (
    sma,
    ema,
    rsi,
    macd,
    bollinger_bands,
    round_or_none,
)
from stocksight.services.indicators.analysis import (
    classify_trend,
    classify_strength,
    support_resistance,
)

logger = logging.getLogger(__name__)


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Calculates technical indicators for a ticker's daily closes.
    All calculations are deterministic and reproducible.
    """

    def __init__(self, macd_mode: MACDSignalMode = MACDSignalMode.SERIES):
        self._macd_mode = macd_mode

    @property
    def name(self) -> str:
        return "IndicatorService"

    async def execute(self, input_data: PriceHistory) -> IndicatorOutput:
        """Calculate indicators and trend analysis for a price history."""
        closes = input_data.closes
        current = closes[-1]

        indicators = self.calculate_indicators(closes)
        support, resistance = support_resistance(closes)

        analysis = TrendAnalysis(
            trend=classify_trend(
                current,
                sma(closes, 20),
                sma(closes, 50),
                sma(closes, 200),
            ),
            strength=classify_strength(rsi(closes, 14)),
            support=round(support, 2),
            resistance=round(resistance, 2),
        )

        logger.debug(
            f"Indicators for {input_data.ticker}: {len(closes)} closes, "
            f"trend={analysis.trend.value}, rsi={indicators.rsi}"
        )

        return IndicatorOutput(
            ticker=input_data.ticker.upper(),
            timestamp=datetime.now(),
            current_price=round(current, 2),
            data_points=len(closes),
            indicators=indicators,
            analysis=analysis,
            source=input_data.source,
        )

    def calculate_indicators(self, closes: list[float]) -> IndicatorSet:
        """Calculate the latest value of each indicator (rounded to 2 dp)."""
        macd_values = macd(closes, mode=self._macd_mode)
        bands = bollinger_bands(closes, 20, 2.0)

        return IndicatorSet(
            sma20=round_or_none(sma(closes, 20)),
            sma50=round_or_none(sma(closes, 50)),
            sma200=round_or_none(sma(closes, 200)),
            ema12=round_or_none(ema(closes, 12)),
            ema26=round_or_none(ema(closes, 26)),
            rsi=round_or_none(rsi(closes, 14)),
            macd=MACDData(
                macd=round_or_none(macd_values.macd),
                signal=round_or_none(macd_values.signal),
                histogram=round_or_none(macd_values.histogram),
            ),
            bollinger=BollingerBandsData(
                upper=round_or_none(bands.upper),
                middle=round_or_none(bands.middle),
                lower=round_or_none(bands.lower),
            ),
        )

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService(
            macd_mode=settings.macd_signal_mode
        )
    return _service_instance
