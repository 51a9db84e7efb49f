"""
Stock API Endpoints

Per-ticker indicators, prediction, history, quote and details.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from stocksight.core.config import settings
from stocksight.schemas.market import HistoryPeriod, HISTORY_PERIODS, HistoryBar, QuoteSnapshot
from stocksight.schemas.indicators import IndicatorOutput
from stocksight.schemas.prediction import PredictionRequest, PredictionResponse
from stocksight.services.base import DataUnavailableError, ExternalAPIError, ValidationError
from stocksight.services.indicators import IndicatorService, get_indicator_service
from stocksight.services.prediction import PredictionResolver, get_prediction_resolver
from stocksight.services.data_ingestion import (
    QuoteService,
    get_quote_service,
    fetch_yahoo_history,
    fetch_stock_details,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{ticker}/indicators", response_model=IndicatorOutput)
async def get_indicators(
    ticker: str,
    service: IndicatorService = Depends(get_indicator_service),
):
    """
    Get technical indicators for a ticker over ~300 calendar days of daily closes.

    Returns:
        - SMA 20/50/200, EMA 12/26, RSI 14
        - MACD (line, signal, histogram), Bollinger Bands (20, 2)
        - Trend, strength, support and resistance

    Indicators without enough history are null.
    """
    ticker = ticker.upper().strip()
    logger.info(f"Fetching indicators: {ticker}")

    try:
        history = await fetch_yahoo_history(ticker, days=settings.indicator_lookback_days)
    except ExternalAPIError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch indicators: {e.message}")

    try:
        return await service.execute(history)
    except Exception as e:
        logger.error(f"Error calculating indicators for {ticker}: {e}")
        raise HTTPException(status_code=500, detail=f"Indicator calculation failed: {e}")


@router.get("/{ticker}/prediction", response_model=PredictionResponse)
async def get_prediction(
    ticker: str = Path(..., min_length=1, max_length=20),
    ml: bool = Query(default=True, description="Try the ML service before technical analysis"),
    lookback_days: int = Query(default=settings.prediction_lookback_days, ge=5, le=365),
    resolver: PredictionResolver = Depends(get_prediction_resolver),
):
    """
    Get a one-week price prediction.

    Fallback chain: ML service -> Yahoo history regression -> Finnhub snapshot.
    `ml_available` / `ml_error` describe the ML attempt.
    """
    request = PredictionRequest(ticker=ticker.upper().strip(), use_ml=ml, lookback_days=lookback_days)
    logger.info(f"Fetching prediction: {request.ticker}")

    try:
        return await resolver.execute(request)
    except DataUnavailableError as e:
        raise HTTPException(
            status_code=502,
            detail={"message": "Failed to fetch prediction", "errors": e.details.get("errors", [])},
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Error predicting {request.ticker}: {e}")
        raise HTTPException(status_code=500, detail=f"Prediction failed: {e}")


@router.get("/{ticker}/history", response_model=list[HistoryBar])
async def get_history(
    ticker: str,
    period: HistoryPeriod = Query(default=HistoryPeriod.MO1),
):
    """
    Get OHLCV bars for charting.

    Periods: 1w, 1mo, 3mo, 1y (daily bars), 5y (weekly bars).
    """
    ticker = ticker.upper().strip()
    days, interval = HISTORY_PERIODS[period]

    try:
        history = await fetch_yahoo_history(ticker, days=days, interval=interval)
    except ExternalAPIError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch history: {e.message}")

    return [
        HistoryBar(
            date=p.date.strftime("%Y-%m-%d"),
            open=round(p.open, 2),
            high=round(p.high, 2),
            low=round(p.low, 2),
            close=round(p.close, 2),
            volume=p.volume,
        )
        for p in history.points
    ]


@router.get("/{ticker}/quote", response_model=QuoteSnapshot)
async def get_quote(
    ticker: str,
    service: QuoteService = Depends(get_quote_service),
):
    """Get the current quote (Yahoo Finance, falling back to Finnhub)."""
    try:
        return await service.get_quote(ticker)
    except DataUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/{ticker}/details")
async def get_details(ticker: str):
    """Get price, trading ranges, valuation ratios and company profile."""
    try:
        return await fetch_stock_details(ticker)
    except ExternalAPIError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch stock details: {e.message}")
