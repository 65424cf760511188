"""
Rate Limiting for the Arpu Foundation API
=========================================
slowapi with Redis storage (in-memory when REDIS_URL is empty).

Public write endpoints get tighter limits:
- /auth/login: 5 req/min (brute force protection)
- /auth/register: 3 req/min
- /contact, /volunteer/requests: 5 req/min (spam)
- /donations/create-order: 10 req/min
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from arpu.core.config import settings
from arpu.core.logging_config import logger


def get_client_ip(request: Request) -> str:
    """Client IP behind proxies: x-forwarded-for (first hop), x-real-ip, cf-connecting-ip"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    return get_remote_address(request) or "unknown"


def get_user_identifier(request: Request) -> str:
    """Rate limit key: authenticated user when known, else client IP"""
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_client_ip(request)}"


def get_storage_uri() -> str:
    return settings.REDIS_URL or "memory://"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=get_storage_uri(),
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED and not settings.TESTING,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """429 with a Retry-After header"""
    retry_after = exc.detail.split(":")[-1].strip() if exc.detail else "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
            "retry_after_seconds": int(retry_after) if retry_after.isdigit() else 60,
        },
        headers={
            "Retry-After": retry_after if retry_after.isdigit() else "60",
            "X-RateLimit-Limit": str(settings.RATE_LIMIT_PER_MINUTE),
        }
    )


def strict_rate_limit():
    """Sign-up style operations (3/min)"""
    return limiter.limit("3/minute", key_func=get_user_identifier)


def auth_rate_limit():
    """Login and public forms (5/min)"""
    return limiter.limit("5/minute", key_func=get_user_identifier)


def payment_rate_limit():
    """Order creation (10/min)"""
    return limiter.limit("10/minute", key_func=get_user_identifier)
