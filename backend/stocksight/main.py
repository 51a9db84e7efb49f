"""
StockSight Backend - FastAPI Application

Main entry point for the backend API.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stocksight.core.config import settings
from stocksight.api.v1 import router as api_v1_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    print(f"Starting {settings.app_name} v{settings.app_version}")
    print(f"Environment: {settings.environment}")
    print(f"ML predictions: {settings.enable_ml_predictions} ({settings.ml_api_base_url})")

    # Initialize Redis cache
    from stocksight.services.cache.redis_client import init_redis, close_redis
    if settings.enable_redis_cache:
        redis_client = await init_redis()
        if redis_client:
            print("Redis cache connected")
        else:
            print("Redis unavailable - using in-memory cache")
    else:
        print("Using in-memory response cache (enable_redis_cache=false)")

    if not settings.finnhub_api_key:
        print("Finnhub API key not set - snapshot fallback disabled")

    yield

    # Shutdown
    print("Shutting down...")
    from stocksight.services.ml.client import close_ml_client
    from stocksight.services.data_ingestion.finnhub_adapter import close_finnhub_client
    await close_ml_client()
    await close_finnhub_client()
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    StockSight Stock Analysis API

    ## Architecture
    - **Data Ingestion**: Yahoo Finance (primary), Finnhub (quote snapshot fallback)
    - **Indicator Engine**: SMA, EMA, RSI, MACD, Bollinger Bands (pure Python/NumPy)
    - **Prediction Engine**: Remote ML service with linear-regression fallback
    - **Response Cache**: Short TTL, Redis-backed when enabled

    ## Core Principles
    - Every prediction carries the model and source that produced it
    - Confidence is capped; predictions are not certainty
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.frontend_url and settings.frontend_url not in cors_origins:
    cors_origins.append(settings.frontend_url)
if settings.allowed_origins:
    cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "StockSight Backend API",
        "docs": "/docs",
        "health": "/health",
    }
