"""
API v1 Router

All API endpoints for the dashboard frontend.
"""

from fastapi import APIRouter

from stocksight.api.v1.endpoints import stock, predictions, market, ml

router = APIRouter()

# Include all endpoint routers
router.include_router(stock.router, prefix="/stock", tags=["Stock"])
router.include_router(predictions.router, prefix="/predictions", tags=["Predictions"])
router.include_router(market.router, prefix="/market", tags=["Market Data"])
router.include_router(ml.router, prefix="/ml", tags=["ML Service"])
