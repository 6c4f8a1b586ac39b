"""JWT authentication middleware for web mode.

In desktop mode (REQUIRE_AUTH not set), all requests pass through with user_id=None.
In web mode, validates HS256 tokens signed with JWT_SECRET and extracts the
user id from the 'sub' claim and the roles from the 'roles' claim.
"""

import logging
import os

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

_logger = logging.getLogger(__name__)

REQUIRE_AUTH = os.getenv("REQUIRE_AUTH", "").lower() == "true"
JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ADMIN_ROLE = os.getenv("ADMIN_ROLE", "admin")

if REQUIRE_AUTH and not JWT_SECRET:
    raise ValueError("JWT_SECRET must be set when REQUIRE_AUTH=true")

# Paths served without a token
_PUBLIC_PATHS = ("/health",)


def _decode_token(token: str) -> dict:
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def _roles_from_payload(payload: dict) -> list[str]:
    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return [str(r) for r in roles]


def get_user_id(request: Request) -> str | None:
    """Extract user_id from request state (set by AuthMiddleware)."""
    return getattr(request.state, "user_id", None)


def is_admin(request: Request) -> bool:
    return ADMIN_ROLE in (getattr(request.state, "roles", None) or [])


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Skip auth entirely in desktop mode
        if not REQUIRE_AUTH:
            request.state.user_id = None
            request.state.roles = []
            return await call_next(request)

        if request.url.path in _PUBLIC_PATHS or request.method == "OPTIONS":
            request.state.user_id = None
            request.state.roles = []
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                {"detail": "Missing authorization header"}, status_code=401
            )

        token = auth_header[7:]
        try:
            payload = _decode_token(token)
        except jwt.ExpiredSignatureError:
            return JSONResponse({"detail": "Token expired"}, status_code=401)
        except jwt.InvalidTokenError:
            return JSONResponse({"detail": "Invalid token"}, status_code=401)

        request.state.user_id = payload.get("sub")
        if not request.state.user_id:
            return JSONResponse(
                {"detail": "Invalid token: missing sub"}, status_code=401
            )
        request.state.roles = _roles_from_payload(payload)
        return await call_next(request)
