"""
FastAPI application entry point
"""
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from slowapi.errors import RateLimitExceeded
import logging

from seatmarket.core.config import settings
from seatmarket.core.database import engine
from seatmarket.core.errors import ServiceError
from seatmarket.core.logging_config import setup_logging, get_trace_id
from seatmarket.core.metrics import get_metrics
from seatmarket.core.redis import redis_client
from seatmarket.api import (
    auth, events, seat_maps, checkout, orders, inspection, payouts, ratings, admin, uploads, websocket,
)
from seatmarket.middleware.rate_limiter import limiter
from seatmarket.middleware.tracing import TracingMiddleware
from seatmarket.services.ban_expiry_worker import ban_expiry_worker
from seatmarket.services.hold_expiry_worker import hold_expiry_worker

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    logger.info(f"🚀 Starting up {settings.APP_NAME}...")

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise

    logger.info("🔴 Connecting to Redis...")
    await redis_client.connect()

    logger.info("⏰ Starting background workers...")
    await hold_expiry_worker.start()
    await ban_expiry_worker.start()

    yield

    logger.info("🛑 Shutting down...")
    await hold_expiry_worker.stop()
    await ban_expiry_worker.stop()
    await redis_client.close()
    await engine.dispose()
    logger.info("✅ Cleanup complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ticket marketplace: events, seat maps, checkout, inspection and payouts",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(f"⚠️ Rate limit exceeded for {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail)
        },
        headers={"Retry-After": "60"}
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Domain errors carry their own status code and error code"""
    if exc.status_code >= 500:
        logger.error(f"❌ {exc.code}: {exc.message}")
    else:
        logger.info(f"↩️ {exc.code} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"❌ Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Internal server error",
            "trace_id": get_trace_id(),
        },
    )


app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    redis_status = "healthy" if redis_client.available else "unavailable"

    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "redis": redis_status,
        "workers": {
            "hold_expiry": hold_expiry_worker.running,
            "ban_expiry": ban_expiry_worker.running,
        },
    }


@app.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Prometheus metrics endpoint"""
    content, content_type = get_metrics()
    return Response(content=content, media_type=content_type)


app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(events.router, prefix="/api/v1", tags=["Events"])
app.include_router(ratings.router, prefix="/api/v1", tags=["Ratings"])
app.include_router(seat_maps.router, prefix="/api/v1", tags=["Seat Maps"])
app.include_router(checkout.router, prefix="/api/v1", tags=["Checkout"])
app.include_router(orders.router, prefix="/api/v1", tags=["Orders"])
app.include_router(inspection.router, prefix="/api/v1", tags=["Inspection"])
app.include_router(payouts.router, prefix="/api/v1", tags=["Payouts"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])
app.include_router(uploads.router, prefix="/api/v1", tags=["Uploads"])
app.include_router(websocket.router, prefix="/ws", tags=["WebSocket"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "seatmarket.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
