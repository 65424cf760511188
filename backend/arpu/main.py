from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text

from arpu.core.config import settings
from arpu.core.database import get_session_local, init_db, close_db
from arpu.core.exceptions import ArpuError, error_response
from arpu.core.logging_config import logger
from arpu.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from arpu.core.rate_limiter import limiter, rate_limit_exceeded_handler
from arpu.api.v1.router import api_router
from slowapi.errors import RateLimitExceeded
import arpu.models  # noqa: F401  register models on Base.metadata

APP_VERSION = "1.0.0"


def validate_critical_config():
    """Fail fast on missing secrets outside development"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")
    if not settings.is_dev_mode():
        if settings.SECRET_KEY == "CHANGE_ME":
            errors.append("SECRET_KEY is using the default value")
        if settings.JWT_SECRET_KEY == "CHANGE_ME":
            errors.append("JWT_SECRET_KEY is using the default value")

    if not settings.razorpay_configured:
        warnings.append("Razorpay keys not set - online donations disabled")
    if not settings.RAZORPAY_WEBHOOK_SECRET:
        warnings.append("RAZORPAY_WEBHOOK_SECRET not set - webhooks will be skipped")
    if not settings.REDIS_URL:
        warnings.append("REDIS_URL not set - rate limits are per process")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    validate_critical_config()

    # Production schema is managed by alembic
    if settings.is_dev_mode() and not settings.TESTING:
        await init_db()
        logger.info("[Startup] Database tables ensured")

    yield

    logger.info(f"Shutting down {settings.APP_NAME} API...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Donations, referral commissions and volunteer coordination for Arpu Foundation",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Middleware (last added runs first)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(ArpuError)
async def arpu_exception_handler(request: Request, exc: ArpuError):
    if exc.status_code >= 500:
        logger.error(f"[API] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Database connectivity plus app info"""
    database = "connected"
    try:
        async with get_session_local()() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"[Health] Database check failed: {e}")
        database = "unavailable"

    return JSONResponse(
        status_code=200 if database == "connected" else 503,
        content={
            "status": "healthy" if database == "connected" else "degraded",
            "database": database,
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }
    )


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "arpu.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
