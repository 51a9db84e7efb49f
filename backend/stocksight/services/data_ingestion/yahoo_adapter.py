"""
Yahoo Finance Data Adapter

Fetches REAL market data from Yahoo Finance (primary quote/history provider).
yfinance is synchronous, so every call runs in the default executor.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import pandas as pd
import yfinance as yf

from stocksight.schemas.market import (
    Interval,
    PricePoint,
    PriceHistory,
    QuoteSnapshot,
)
from stocksight.services.base import ExternalAPIError

logger = logging.getLogger(__name__)

SOURCE = "Yahoo Finance"


def get_yahoo_symbol(ticker: str) -> str:
    """Normalize a ticker for Yahoo Finance (e.g. 'aapl ' -> 'AAPL', 'tcs.ns' -> 'TCS.NS')."""
    return ticker.upper().strip()


async def _run(func, *args, **kwargs):
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, lambda: func(*args, **kwargs))


def frame_to_points(hist: pd.DataFrame) -> list[PricePoint]:
    """Convert a yfinance history frame into date-ordered PricePoints, skipping incomplete rows."""
    points = []
    for idx, row in hist.sort_index().iterrows():
        prices = [row.get(col) for col in ("Open", "High", "Low", "Close")]
        if any(pd.isna(p) or p <= 0 for p in prices):
            continue

        volume = row.get("Volume", 0)
        points.append(
            PricePoint(
                date=idx.to_pydatetime(),
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=0 if pd.isna(volume) else int(volume),
            )
        )
    return points


async def fetch_yahoo_history(
    ticker: str,
    days: int = 60,
    interval: Interval = Interval.D1,
) -> PriceHistory:
    """
    Fetch OHLCV history covering the last `days` calendar days.

    Raises:
        ExternalAPIError: on transport failure or when no bars come back
    """
    symbol = get_yahoo_symbol(ticker)
    end = datetime.now()
    start = end - timedelta(days=days)

    try:
        logger.info(f"Fetching {symbol} history ({days}d, {interval.value}) from Yahoo Finance...")
        hist = await _run(
            yf.Ticker(symbol).history,
            start=start.strftime("%Y-%m-%d"),
            end=(end + timedelta(days=1)).strftime("%Y-%m-%d"),
            interval=interval.value,
        )
    except Exception as e:
        logger.warning(f"Yahoo Finance history failed for {symbol}: {e}")
        raise ExternalAPIError(SOURCE, f"History request failed for {symbol}: {e}")

    if hist is None or hist.empty:
        raise ExternalAPIError(SOURCE, f"No history returned for {symbol}")

    try:
        points = frame_to_points(hist)
    except Exception as e:
        logger.warning(f"Unusable Yahoo Finance bars for {symbol}: {e}")
        raise ExternalAPIError(SOURCE, f"Malformed history returned for {symbol}: {e}")

    if not points:
        raise ExternalAPIError(SOURCE, f"No usable bars returned for {symbol}")

    return PriceHistory(ticker=symbol, interval=interval, points=points, source=SOURCE)


def _quote_from_info(symbol: str, info: dict[str, Any]) -> QuoteSnapshot:
    price = info.get("regularMarketPrice") or info.get("currentPrice")
    if not price:
        raise ExternalAPIError(SOURCE, f"No quote price for {symbol}")

    previous_close = info.get("regularMarketPreviousClose") or info.get("previousClose")
    change = info.get("regularMarketChange")
    change_percent = info.get("regularMarketChangePercent")

    if change is None and previous_close:
        change = price - previous_close
    if change_percent is None and previous_close:
        change_percent = (price - previous_close) / previous_close * 100

    return QuoteSnapshot(
        ticker=symbol,
        price=float(price),
        change=round(float(change or 0), 2),
        change_percent=round(float(change_percent or 0), 2),
        previous_close=float(previous_close) if previous_close else None,
        volume=int(info.get("regularMarketVolume") or info.get("volume") or 0),
        name=info.get("longName") or info.get("shortName") or symbol,
        source=SOURCE,
        timestamp=datetime.now(),
    )


async def fetch_yahoo_quote(ticker: str) -> QuoteSnapshot:
    """
    Fetch the current quote snapshot.

    Raises:
        ExternalAPIError: on transport failure or a missing price
    """
    symbol = get_yahoo_symbol(ticker)
    try:
        info = await _run(lambda: yf.Ticker(symbol).info)
    except Exception as e:
        logger.warning(f"Yahoo Finance quote failed for {symbol}: {e}")
        raise ExternalAPIError(SOURCE, f"Quote request failed for {symbol}: {e}")

    return _quote_from_info(symbol, info or {})


def format_large_number(num: Optional[float]) -> str:
    """Format as 1.23T / 4.56B / 7.89M / 1.00K."""
    if not num:
        return "N/A"
    if num >= 1e12:
        return f"{num / 1e12:.2f}T"
    if num >= 1e9:
        return f"{num / 1e9:.2f}B"
    if num >= 1e6:
        return f"{num / 1e6:.2f}M"
    if num >= 1e3:
        return f"{num / 1e3:.2f}K"
    return str(num)


def _rounded(value: Any) -> Optional[float]:
    return round(float(value), 2) if value else None


def details_from_info(symbol: str, info: dict[str, Any]) -> dict:
    """Project a Yahoo info payload into the stock-details shape."""
    name = info.get("longName") or info.get("shortName") or symbol
    market_cap = info.get("marketCap")

    return {
        "ticker": symbol,
        "name": name,
        "price": round(float(info.get("regularMarketPrice") or info.get("currentPrice") or 0), 2),
        "change": round(float(info.get("regularMarketChange") or 0), 2),
        "change_percent": round(float(info.get("regularMarketChangePercent") or 0), 2),
        "volume": info.get("regularMarketVolume") or info.get("volume") or 0,
        "market_cap": market_cap,
        "market_cap_formatted": format_large_number(market_cap),
        "average_volume": info.get("averageVolume") or info.get("averageDailyVolume3Month"),
        "shares_outstanding": info.get("sharesOutstanding") or info.get("impliedSharesOutstanding"),
        "open": _rounded(info.get("regularMarketOpen") or info.get("open")),
        "previous_close": _rounded(
            info.get("regularMarketPreviousClose") or info.get("previousClose")
        ),
        "day_high": _rounded(info.get("regularMarketDayHigh") or info.get("dayHigh")),
        "day_low": _rounded(info.get("regularMarketDayLow") or info.get("dayLow")),
        "bid": _rounded(info.get("bid")),
        "ask": _rounded(info.get("ask")),
        "fifty_two_week_high": _rounded(info.get("fiftyTwoWeekHigh")),
        "fifty_two_week_low": _rounded(info.get("fiftyTwoWeekLow")),
        "pe_ratio": info.get("trailingPE"),
        "forward_pe": info.get("forwardPE"),
        "price_to_book": info.get("priceToBook"),
        "peg_ratio": info.get("pegRatio") or info.get("trailingPegRatio"),
        "eps": info.get("trailingEps") or info.get("epsTrailingTwelveMonths"),
        "forward_eps": info.get("forwardEps"),
        "dividend_yield": info.get("dividendYield"),
        "dividend_rate": info.get("dividendRate") or info.get("trailingAnnualDividendRate"),
        "beta": info.get("beta"),
        "target_price": _rounded(info.get("targetMeanPrice")),
        "recommendation_mean": _rounded(info.get("recommendationMean")),
        "analyst_count": info.get("numberOfAnalystOpinions"),
        "enterprise_value": (
            format_large_number(info.get("enterpriseValue")) if info.get("enterpriseValue") else None
        ),
        "ebitda": format_large_number(info.get("ebitda")) if info.get("ebitda") else None,
        "sector": info.get("sector") or info.get("sectorDisp"),
        "industry": info.get("industry") or info.get("industryDisp"),
        "employees": info.get("fullTimeEmployees"),
        "website": info.get("website"),
        "description": info.get("longBusinessSummary") or f"{name} stock information.",
    }


async def fetch_stock_details(ticker: str) -> dict:
    """
    Get detailed stock information (price, ranges, ratios, profile).

    Raises:
        ExternalAPIError: on transport failure or an empty payload
    """
    symbol = get_yahoo_symbol(ticker)
    try:
        info = await _run(lambda: yf.Ticker(symbol).info)
    except Exception as e:
        logger.error(f"Error getting info for {symbol}: {e}")
        raise ExternalAPIError(SOURCE, f"Details request failed for {symbol}: {e}")

    if not info:
        raise ExternalAPIError(SOURCE, f"No details returned for {symbol}")

    return details_from_info(symbol, info)

