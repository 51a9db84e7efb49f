"""
ML Prediction Service Client

Thin async client for the remote LSTM prediction service.

Endpoints:
- POST /analyze_stock {"stock": T}        -> {message, data_preview[], ...}
- GET  /get_predictions/{T}               -> {predictions[{Predicted_Close}], ...}
- GET  /download_chart/{T}/prediction     -> PNG chart
- GET  /                                  -> health payload
"""

import logging
from typing import Any, Optional

import aiohttp

from stocksight.core.config import settings
from stocksight.services.base import ExternalAPIError

logger = logging.getLogger(__name__)

SOURCE = "ML Service"


class MLPredictionClient:
    """Async client for the ML prediction service."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.ml_api_base_url).rstrip("/")
        self._timeout = timeout or settings.ml_api_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, path: str, raw: bool = False, **kwargs) -> Any:
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status != 200:
                    text = await response.text()
                    raise ExternalAPIError(
                        SOURCE,
                        f"{method} {path} returned status {response.status}",
                        details={"status": response.status, "body": text[:500]},
                    )
                if raw:
                    return await response.read()
                return await response.json(content_type=None)
        except ExternalAPIError:
            raise
        except Exception as e:
            raise ExternalAPIError(SOURCE, f"{method} {path} failed: {e}")

    async def analyze_stock(self, ticker: str) -> dict[str, Any]:
        """Run analysis for a ticker; returns the message and a prediction preview."""
        try:
            return await self._request("POST", "/analyze_stock", json={"stock": ticker.upper()})
        except ExternalAPIError as e:
            logger.error(f"Error analyzing stock {ticker}: {e.message}")
            raise

    async def get_predictions(self, ticker: str) -> dict[str, Any]:
        """Get raw prediction numbers for a ticker."""
        try:
            return await self._request("GET", f"/get_predictions/{ticker.upper()}")
        except ExternalAPIError as e:
            logger.error(f"Error getting predictions for {ticker}: {e.message}")
            raise

    def chart_url(self, ticker: str, chart_type: str = "prediction") -> str:
        """Full URL of the chart image for a ticker."""
        return f"{self.base_url}/download_chart/{ticker.upper()}/{chart_type}"

    async def download_chart(self, ticker: str, chart_type: str = "prediction") -> bytes:
        """
        Download the PNG chart for a ticker.

        Raises:
            ExternalAPIError: on failure or an empty body
        """
        path = f"/download_chart/{ticker.upper()}/{chart_type}"
        try:
            content = await self._request("GET", path, raw=True)
        except ExternalAPIError as e:
            logger.error(f"Error downloading chart for {ticker}: {e.message}")
            raise

        if not content:
            raise ExternalAPIError(SOURCE, f"Empty chart returned for {ticker.upper()}")
        return content

    async def health_check(self) -> dict[str, Any]:
        """
        Query the service root.

        Raises:
            ExternalAPIError: if the service is unavailable
        """
        try:
            return await self._request("GET", "/")
        except ExternalAPIError as e:
            logger.error(f"ML API health check failed: {e.message}")
            raise


# Singleton instance
_ml_client: Optional[MLPredictionClient] = None


def get_ml_client() -> MLPredictionClient:
    """Get or create the ML prediction client."""
    global _ml_client
    if _ml_client is None:
        _ml_client = MLPredictionClient()
    return _ml_client


async def close_ml_client() -> None:
    """Close the ML client HTTP session."""
    if _ml_client is not None:
        await _ml_client.close()
