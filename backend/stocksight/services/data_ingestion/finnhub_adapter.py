"""
Finnhub Data Adapter

Secondary quote provider, used only as failover when Yahoo Finance is
unavailable. Finnhub's free quote endpoint returns a current snapshot
(no history).
"""

import logging
from datetime import datetime
from typing import Any, Optional

import aiohttp

from stocksight.core.config import settings
from stocksight.schemas.market import QuoteSnapshot
from stocksight.services.base import ExternalAPIError

logger = logging.getLogger(__name__)

SOURCE = "Finnhub"


def quote_from_payload(ticker: str, data: dict[str, Any]) -> QuoteSnapshot:
    """
    Map a Finnhub /quote payload.

    Fields: c = current, d = change, dp = change %, pc = previous close,
    t = unix timestamp. A zero current price means an unknown symbol.
    """
    price = data.get("c") or 0
    if price <= 0:
        raise ExternalAPIError(SOURCE, f"No quote price for {ticker}")

    timestamp = data.get("t")
    return QuoteSnapshot(
        ticker=ticker,
        price=float(price),
        change=round(float(data.get("d") or 0), 2),
        change_percent=round(float(data.get("dp") or 0), 2),
        previous_close=float(data["pc"]) if data.get("pc") else None,
        source=SOURCE,
        timestamp=datetime.fromtimestamp(timestamp) if timestamp else datetime.now(),
    )


class FinnhubClient:
    """
    Async Finnhub REST client.

    Endpoints used:
    - /quote?symbol=X    current snapshot
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._api_key = api_key if api_key is not None else settings.finnhub_api_key
        self._base_url = (base_url or settings.finnhub_base_url).rstrip("/")
        self._timeout = timeout or settings.finnhub_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        if not self.is_configured:
            raise ExternalAPIError(SOURCE, "FINNHUB_API_KEY is not configured")

        session = await self._ensure_session()
        url = f"{self._base_url}{path}"

        try:
            async with session.get(url, params={**params, "token": self._api_key}) as response:
                if response.status != 200:
                    raise ExternalAPIError(
                        SOURCE,
                        f"{path} returned status {response.status}",
                        details={"status": response.status},
                    )
                return await response.json()
        except ExternalAPIError:
            raise
        except Exception as e:
            logger.warning(f"Finnhub {path} failed: {e}")
            raise ExternalAPIError(SOURCE, f"{path} request failed: {e}")

    async def get_quote(self, ticker: str) -> QuoteSnapshot:
        """Get the current quote snapshot for a ticker."""
        symbol = ticker.upper().strip()
        data = await self._get("/quote", {"symbol": symbol})
        return quote_from_payload(symbol, data or {})


# Singleton instance
_finnhub_client: Optional[FinnhubClient] = None


def get_finnhub_client() -> FinnhubClient:
    """Get or create the Finnhub client."""
    global _finnhub_client
    if _finnhub_client is None:
        _finnhub_client = FinnhubClient()
    return _finnhub_client


async def close_finnhub_client() -> None:
    """Close the Finnhub HTTP session."""
    if _finnhub_client is not None:
        await _finnhub_client.close()
