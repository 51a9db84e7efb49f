"""
ML Service Endpoints

Direct access to the remote prediction service: health, analysis,
raw predictions and prediction charts.
"""

import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from stocksight.schemas.prediction import MLAnalyzeRequest
from stocksight.services.base import ExternalAPIError
from stocksight.services.ml import MLPredictionClient, get_ml_client

logger = logging.getLogger(__name__)

router = APIRouter()

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.\-^]+$")


def _normalize_symbol(ticker: str) -> str:
    symbol = ticker.upper().strip()
    if not SYMBOL_PATTERN.match(symbol):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid stock symbol format: {symbol!r}",
        )
    return symbol


def _upstream_error(action: str, ticker: str, e: ExternalAPIError) -> HTTPException:
    status = 404 if e.details.get("status") == 404 else 502
    return HTTPException(
        status_code=status,
        detail={"error": f"Failed to {action}", "details": e.message, "ticker": ticker},
    )


async def _chart_response(
    client: MLPredictionClient, symbol: str, chart_type: str, attachment: bool
) -> Response:
    try:
        content = await client.download_chart(symbol, chart_type)
    except ExternalAPIError as e:
        raise _upstream_error("fetch chart", symbol, e)

    headers = {"Cache-Control": "public, max-age=300"}
    if attachment:
        headers["Content-Disposition"] = f'attachment; filename="{symbol}_{chart_type}.png"'
    return Response(content=content, media_type="image/png", headers=headers)


@router.get("/health")
async def ml_health(client: MLPredictionClient = Depends(get_ml_client)):
    """Report whether the ML prediction service answers (503 if not)."""
    try:
        response = await client.health_check()
    except ExternalAPIError as e:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "ml_service": client.base_url,
                "status": "unavailable",
                "error": e.message,
                "timestamp": datetime.now().isoformat(),
            },
        )

    return {
        "success": True,
        "ml_service": client.base_url,
        "status": "operational",
        "response": response,
        "timestamp": datetime.now().isoformat(),
    }


@router.post("/analyze")
async def analyze(
    request: MLAnalyzeRequest,
    client: MLPredictionClient = Depends(get_ml_client),
):
    """Run ML analysis for a ticker and return the first predicted close."""
    symbol = _normalize_symbol(request.ticker)
    try:
        result = await client.analyze_stock(symbol)
    except ExternalAPIError as e:
        raise _upstream_error("analyze stock", symbol, e)

    preview = result.get("data_preview") or [{}]
    return {
        "success": True,
        "ticker": symbol,
        "message": result.get("message"),
        "prediction": preview[0].get("Predicted_Close"),
        "charts": result.get("charts"),
        "timestamp": datetime.now().isoformat(),
    }


@router.get("/predictions/{ticker}")
async def predictions(
    ticker: str,
    client: MLPredictionClient = Depends(get_ml_client),
):
    """Raw prediction rows from the ML service."""
    symbol = _normalize_symbol(ticker)
    try:
        result = await client.get_predictions(symbol)
    except ExternalAPIError as e:
        raise _upstream_error("fetch predictions", symbol, e)

    return {
        "success": True,
        "ticker": symbol,
        "predictions": result.get("predictions", result) if isinstance(result, dict) else result,
        "timestamp": datetime.now().isoformat(),
    }


@router.get("/chart/{ticker}")
async def chart(
    ticker: str,
    chart_type: str = Query(default="prediction", alias="type"),
    download: bool = Query(default=False),
    client: MLPredictionClient = Depends(get_ml_client),
):
    """
    Chart for a ticker.

    Returns the chart URL, or the PNG itself as an attachment with download=true.
    """
    symbol = _normalize_symbol(ticker)
    if download:
        return await _chart_response(client, symbol, chart_type, attachment=True)

    return {
        "success": True,
        "ticker": symbol,
        "chart_type": chart_type,
        "chart_url": client.chart_url(symbol, chart_type),
        "timestamp": datetime.now().isoformat(),
    }


@router.get("/download_chart/{ticker}/{chart_type}")
async def download_chart(
    ticker: str,
    chart_type: str,
    preview: bool = Query(default=False, description="Inline image instead of an attachment"),
    client: MLPredictionClient = Depends(get_ml_client),
):
    """Stream the PNG chart (attachment unless preview=true)."""
    symbol = _normalize_symbol(ticker)
    logger.info(f"{'Previewing' if preview else 'Downloading'} {chart_type} chart for {symbol}")
    return await _chart_response(client, symbol, chart_type, attachment=not preview)
