"""Rate limiting for web mode using slowapi.

Limits the calculate, traverse and navigator-step endpoints per user.
Only active when REQUIRE_AUTH is set.
"""

import os

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

REQUIRE_AUTH = os.getenv("REQUIRE_AUTH", "").lower() == "true"

CALCULATE_RATE_LIMIT = os.getenv("CALCULATE_RATE_LIMIT", "60/minute")


def _get_user_key(request: Request) -> str:
    """Rate limit key: the authenticated user_id, else the client address."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return user_id
    return get_remote_address(request)


# Disabled in desktop mode
limiter = Limiter(key_func=_get_user_key, enabled=REQUIRE_AUTH)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please wait before making more requests.",
            "retry_after": exc.detail,
        },
    )
