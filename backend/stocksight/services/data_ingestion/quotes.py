"""
Quote Service

Current-quote lookups with Yahoo Finance as primary and Finnhub as
failover, plus concurrent fan-out for watchlists and dashboard tiles.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from stocksight.schemas.market import QuoteSnapshot
from stocksight.services.base import DataUnavailableError, ExternalAPIError
from stocksight.services.data_ingestion.yahoo_adapter import fetch_yahoo_quote
from stocksight.services.data_ingestion.finnhub_adapter import get_finnhub_client

logger = logging.getLogger(__name__)

QuoteFetcher = Callable[[str], Awaitable[QuoteSnapshot]]


class QuoteService:
    """Quote lookups across an ordered list of providers."""

    def __init__(self, providers: Optional[list[tuple[str, QuoteFetcher]]] = None):
        if providers is None:
            providers = [
                ("Yahoo Finance", fetch_yahoo_quote),
                ("Finnhub", get_finnhub_client().get_quote),
            ]
        self._providers = providers

    @property
    def name(self) -> str:
        return "QuoteService"

    async def get_quote(self, ticker: str) -> QuoteSnapshot:
        """
        Get a quote from the first provider that answers.

        Raises:
            DataUnavailableError: if every provider fails
        """
        symbol = ticker.upper().strip()
        errors = []

        for source, fetch in self._providers:
            try:
                return await fetch(symbol)
            except ExternalAPIError as e:
                logger.info(f"{source} quote unavailable for {symbol}: {e.message}")
                errors.append(f"{source}: {e.message}")
            except Exception as e:
                logger.warning(f"{source} quote failed for {symbol}: {e}")
                errors.append(f"{source}: {e}")

        logger.error(f"No quote available for {symbol} from any source")
        raise DataUnavailableError(
            self.name,
            f"No quote available for {symbol}",
            details={"errors": errors},
        )

    async def get_quotes(self, tickers: list[str]) -> list[QuoteSnapshot]:
        """Fetch quotes concurrently; tickers that fail everywhere are dropped."""
        results = await asyncio.gather(
            *[self.get_quote(t) for t in tickers], return_exceptions=True
        )

        quotes = []
        for ticker, result in zip(tickers, results):
            if isinstance(result, QuoteSnapshot):
                quotes.append(result)
            else:
                logger.warning(f"Dropping {ticker} from quote batch: {result}")
        return quotes


# Singleton instance
_quote_service: Optional[QuoteService] = None


def get_quote_service() -> QuoteService:
    """Get or create quote service instance."""
    global _quote_service
    if _quote_service is None:
        _quote_service = QuoteService()
    return _quote_service
