"""
Main FastAPI application
Entry point for the PaperTrade simulated trading API
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from contextlib import asynccontextmanager
import logging

from papertrade.core.config import settings
from papertrade.core.security import limiter, get_security_headers
from papertrade.core.database import init_db, close_db
from papertrade.core.redis import init_redis, get_redis_client, close_redis, cache_quotes
from papertrade.core.price_feed import (
    init_price_generator,
    get_price_generator,
    shutdown_price_generator,
)
from papertrade.services.market_quotes import store_tick

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# LIFESPAN CONTEXT MANAGER
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting PaperTrade API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    await init_db()

    # Redis is optional
    if settings.REDIS_URL:
        try:
            await init_redis(settings.REDIS_URL)
            logger.info("Redis connected")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")

    price_feed = init_price_generator(
        settings.MARKET_SYMBOLS,
        interval=settings.PRICE_TICK_SECONDS,
        seed=settings.PRICE_SEED
    )
    price_feed.add_listener(store_tick)
    price_feed.add_listener(cache_quotes)

    if settings.PRICE_FEED_AUTOSTART:
        await price_feed.start()

    logger.info("Application startup complete")

    yield  # Application runs here

    # ==================== SHUTDOWN ====================
    logger.info("Shutting down PaperTrade API")

    await shutdown_price_generator()

    await close_redis()
    logger.info("Redis connection closed")

    await close_db()
    logger.info("Database connections closed")

    logger.info("Shutdown complete")

# ============================================================================
# CREATE FASTAPI APP
# ============================================================================

app = FastAPI(
    title="PaperTrade API",
    description="Simulated equity trading with virtual cash",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter

# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for key, value in get_security_headers().items():
        response.headers[key] = value
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."}
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc),
                "type": type(exc).__name__
            }
        )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# ROOT ENDPOINTS
# ============================================================================

def _price_feed_running() -> bool:
    feed = get_price_generator()
    return bool(feed and feed.running)


@app.get("/")
async def root():
    return {
        "message": "PaperTrade API",
        "version": "1.0.0",
        "status": "operational",
        "price_feed_status": "running" if _price_feed_running() else "stopped",
        "redis_status": "connected" if get_redis_client() else "disconnected"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "services": {
            "redis": "up" if get_redis_client() else "down",
            "price_feed": "up" if _price_feed_running() else "down"
        }
    }

# ============================================================================
# API ROUTES
# ============================================================================

from papertrade.api import auth, trading, market  # noqa: E402

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(trading.router, prefix="/trading", tags=["Trading"])
app.include_router(market.router, prefix="/market", tags=["Market Data"])

# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "papertrade.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
