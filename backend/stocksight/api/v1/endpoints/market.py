"""
Market Data API Endpoints

Batch quote lookups for watchlists.
"""

from fastapi import APIRouter, Depends, Query

from stocksight.schemas.market import QuoteSnapshot
from stocksight.services.data_ingestion import QuoteService, get_quote_service
from stocksight.api.v1.endpoints.predictions import parse_tickers

router = APIRouter()


@router.get("/quotes", response_model=list[QuoteSnapshot])
async def get_quotes(
    tickers: str = Query(..., description="Comma-separated tickers, e.g. AAPL,MSFT"),
    service: QuoteService = Depends(get_quote_service),
):
    """
    Get live quotes for several tickers.

    Yahoo Finance first, Finnhub as fallback; tickers with no quote are dropped.
    """
    return await service.get_quotes(parse_tickers(tickers))
