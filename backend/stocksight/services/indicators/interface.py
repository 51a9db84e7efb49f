"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod

from stocksight.services.base import BaseService
from stocksight.schemas.market import PriceHistory
from stocksight.schemas.indicators import IndicatorOutput, IndicatorSet


class IndicatorServiceInterface(BaseService[PriceHistory, IndicatorOutput]):
    """
    Indicator Engine Service Contract.

    INPUT: PriceHistory
        - ticker, date-ordered OHLCV points

    OUTPUT: IndicatorOutput
        - indicators: SMA/EMA/RSI/MACD/Bollinger (None when unavailable)
        - analysis: trend, strength, support, resistance
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: PriceHistory) -> IndicatorOutput:
        """Calculate indicators and trend analysis for a price history."""
        pass

    @abstractmethod
    def calculate_indicators(self, closes: list[float]) -> IndicatorSet:
        """Calculate the latest value of each indicator over a closing-price series."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass
