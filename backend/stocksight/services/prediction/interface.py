"""
Prediction Service Interface

Defines the contract for the prediction layer.
"""

from abc import abstractmethod

from stocksight.services.base import BaseService
from stocksight.schemas.prediction import PredictionRequest, PredictionResponse


class PredictionServiceInterface(BaseService[PredictionRequest, PredictionResponse]):
    """
    Prediction Service Contract.

    INPUT: PredictionRequest
        - ticker: Symbol to forecast
        - use_ml: Whether to try the remote ML service first
        - lookback_days: Days of history for the regression fallback

    OUTPUT: PredictionResponse
        - predicted/current price, % change, signal, risk, confidence
        - model used, weighted factors, recommendation text
        - ml_available / ml_error describing the ML attempt
    """

    @property
    def name(self) -> str:
        return "PredictionService"

    @abstractmethod
    async def execute(self, input_data: PredictionRequest) -> PredictionResponse:
        """Resolve a prediction through the fallback chain."""
        pass

    @abstractmethod
    async def predict_many(
        self, tickers: list[str], use_ml: bool = True, lookback_days: int = 60
    ) -> list[PredictionResponse]:
        """Predict several tickers concurrently, dropping the ones that fail."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Prediction service is healthy while local fallback is possible."""
        pass
