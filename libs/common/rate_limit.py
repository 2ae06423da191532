"""Rate limiting configuration for the Reach API.

Uses slowapi. Counters live in ``RATE_LIMIT_STORAGE_URI`` so that several API
instances share them (``redis://...`` in deployed environments).
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings


def get_client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.

    Checks X-Forwarded-For header first (for proxied requests),
    then falls back to direct connection IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_user_or_ip(request: Request) -> str:
    """
    Rate limit by user ID if authenticated, otherwise by IP.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{get_client_ip(request)}"


@lru_cache
def get_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=_get_user_or_ip,
        default_limits=["100/minute"],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Custom handler for rate limit exceeded errors.

    Returns a JSON response with clear error message and retry-after header.
    """
    window = exc.detail.split("per")[-1].strip() if exc.detail else "a while"

    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests. Please try again in {window}.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
        headers={
            "Retry-After": str(getattr(exc, "retry_after", 60)),
            "X-RateLimit-Limit": str(getattr(exc, "limit", "unknown")),
        },
    )


# Decorator shortcuts for the money-moving endpoints
def withdrawal_limit(func: Callable) -> Callable:
    """3 withdrawals per hour."""
    return limiter.limit("3/hour")(func)


def deposit_limit(func: Callable) -> Callable:
    """5 deposit initialisations per 15 minutes."""
    return limiter.limit("5 per 15 minutes")(func)


def bank_account_limit(func: Callable) -> Callable:
    """10 bank account additions per hour."""
    return limiter.limit("10/hour")(func)


def pin_limit(func: Callable) -> Callable:
    """10 PIN checks per 15 minutes."""
    return limiter.limit("10 per 15 minutes")(func)
