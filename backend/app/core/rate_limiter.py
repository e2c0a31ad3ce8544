"""
Rate Limiting for the Integral Project Hub API
==============================================
Implements rate limiting using slowapi with in-process storage.

- Default: RATE_LIMIT_PER_MINUTE per client
- /auth/login: LOGIN_RATE_LIMIT (brute force protection)
- /auth/register: REGISTER_RATE_LIMIT
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key based on user authentication.

    Authenticated user ID (set on request.state by the auth dependency)
    wins over the client IP address.
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 with a Retry-After hint"""
    retry_after = exc.detail.split(":")[-1].strip() if exc.detail else "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "detail": "Too many requests. Please slow down.",
            "error": {
                "code": "RATE_LIMITED",
                "message": str(exc.detail),
                "details": {},
            },
        },
        headers={"Retry-After": retry_after if retry_after.isdigit() else "60"},
    )
