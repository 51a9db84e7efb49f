"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings

from stocksight.schemas.indicators import MACDSignalMode


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "StockSight Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Redis (optional backing for the response cache)
    redis_url: str = "redis://localhost:6379"
    enable_redis_cache: bool = False

    # CORS (Frontend URL)
    frontend_url: str = "http://localhost:3000"
    allowed_origins: list[str] = ["http://localhost:3000"]

    # ML prediction service
    ml_api_base_url: str = "https://stock-price-prediction-8.onrender.com"
    ml_api_timeout: float = 30.0  # ML predictions are slow on cold start
    enable_ml_predictions: bool = True

    # Finnhub (secondary quote provider)
    finnhub_api_key: Optional[str] = None
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    finnhub_timeout: float = 10.0

    # Prediction / indicator engine
    prediction_cache_ttl: int = 60  # seconds
    prediction_lookback_days: int = 60
    indicator_lookback_days: int = 300  # calendar days; ~205 trading bars for SMA200
    macd_signal_mode: MACDSignalMode = MACDSignalMode.SERIES  # Options: series, legacy

    # Feed limits
    max_feed_tickers: int = 25

    @field_validator("macd_signal_mode", mode="before")
    @classmethod
    def _lower_macd_mode(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
