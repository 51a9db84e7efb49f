"""
ML Prediction Service

Client for the remote LSTM prediction service. The service is optional:
every failure surfaces as ExternalAPIError and the prediction resolver
falls back to technical analysis.
"""

from stocksight.services.ml.client import (
    MLPredictionClient,
    get_ml_client,
    close_ml_client,
)

__all__ = [
    "MLPredictionClient",
    "get_ml_client",
    "close_ml_client",
]
