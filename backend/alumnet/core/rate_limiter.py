"""
Rate Limiting for AlumNet API
=============================
Implements rate limiting using slowapi. Storage defaults to in-process memory
and can be pointed at any limits backend via RATE_LIMIT_STORAGE_URI.

Special endpoints have their own limits:
- /auth/login: 5 req/min (brute force protection)
- /auth/signup: 3 req/min
- /auth/forgot-password, /auth/resend-otp: 3 req/min
- everything else: RATE_LIMIT_PER_MINUTE, enforced by SlowAPIMiddleware
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from alumnet.core.config import settings
from alumnet.core.exceptions import error_response
from alumnet.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key.

    Authenticated requests are keyed by user ID (set on request.state by the
    auth dependency), anonymous ones by client IP.
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Render rate limit errors as the standard error envelope with Retry-After"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content=error_response(
            "Too many requests. Please slow down.",
            code="RATE_LIMIT_EXCEEDED",
            details={"limit": str(exc.detail)}
        ),
        headers={"Retry-After": "60"}
    )


def auth_rate_limit():
    """Rate limit for login (5/min)"""
    return limiter.limit("5/minute")


def strict_rate_limit():
    """Very strict rate limit for signup and OTP emails (3/min)"""
    return limiter.limit("3/minute")
