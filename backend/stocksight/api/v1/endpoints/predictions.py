"""
Prediction Feed Endpoints

Batch predictions for the dashboard feed and watchlist.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from stocksight.core.config import settings
from stocksight.schemas.prediction import PredictionResponse
from stocksight.services.prediction import PredictionResolver, get_prediction_resolver

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_tickers(raw: str) -> list[str]:
    """Split a comma-separated ticker list, upper-cased and de-duplicated in order."""
    tickers = []
    for part in raw.split(","):
        ticker = part.strip().upper()
        if ticker and ticker not in tickers:
            tickers.append(ticker)

    if not tickers:
        raise HTTPException(status_code=400, detail="At least one ticker is required")
    if len(tickers) > settings.max_feed_tickers:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_feed_tickers} tickers per request",
        )
    return tickers


@router.get("/feed", response_model=list[PredictionResponse])
async def get_prediction_feed(
    tickers: str = Query(..., description="Comma-separated tickers, e.g. AAPL,MSFT"),
    ml: bool = Query(default=True),
    resolver: PredictionResolver = Depends(get_prediction_resolver),
):
    """
    Predict every ticker concurrently.

    Tickers whose data sources all fail are left out of the feed.
    """
    symbols = parse_tickers(tickers)
    predictions = await resolver.predict_many(
        symbols, use_ml=ml, lookback_days=settings.prediction_lookback_days
    )
    logger.info(f"Prediction feed: {len(predictions)}/{len(symbols)} tickers resolved")
    return predictions
