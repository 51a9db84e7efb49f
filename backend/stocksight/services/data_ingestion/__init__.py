"""
Data Ingestion

Provider adapters for the prediction and indicator engines:

    - Yahoo Finance (primary): OHLCV history, quotes, stock details
    - Finnhub (secondary): current-quote snapshot only

Adapters raise ExternalAPIError on any upstream failure so that callers
can fall through to the next provider.
"""

from stocksight.services.data_ingestion.yahoo_adapter import (
    fetch_yahoo_history,
    fetch_yahoo_quote,
    fetch_stock_details,
)
from stocksight.services.data_ingestion.finnhub_adapter import (
    FinnhubClient,
    get_finnhub_client,
    close_finnhub_client,
)
from stocksight.services.data_ingestion.quotes import QuoteService, get_quote_service

__all__ = [
    "fetch_yahoo_history",
    "fetch_yahoo_quote",
    "fetch_stock_details",
    "FinnhubClient",
    "get_finnhub_client",
    "close_finnhub_client",
    "QuoteService",
    "get_quote_service",
]
