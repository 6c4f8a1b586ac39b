"""Audit trail for web mode.

Requests are mapped to clinical actions (a calculation, a traversal step, a
stored-parameter write, an admin export) and logged with the user, the
resource id and the outcome. Inputs, parameter values and results are never
logged; only ids taken from the path.
"""

import logging
import re
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("audit")
logger.setLevel(logging.INFO)

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    )
    logger.addHandler(handler)

# (method, path pattern, action); the first group, if any, is the resource id
_ACTIONS = [
    ("POST", r"/calculators/([^/]+)/calculate", "calculator.calculate"),
    ("POST", r"/calculators/([^/]+)/screening", "calculator.screen"),
    ("POST", r"/calculators/([^/]+)/export", "calculator.export"),
    ("POST", r"/algorithms/([^/]+)/traverse", "algorithm.traverse"),
    ("POST", r"/algorithms/([^/]+)/export", "algorithm.export"),
    ("POST", r"/algorithms/([^/]+)/navigator", "navigator.start"),
    ("POST", r"/algorithms/([^/]+)/navigator/next", "navigator.next"),
    ("POST", r"/algorithms/([^/]+)/navigator/back", "navigator.back"),
    ("PUT", r"/parameters/([^/]+)", "parameter.store"),
    ("DELETE", r"/parameters/([^/]+)", "parameter.delete"),
    ("DELETE", r"/parameters", "parameter.clear"),
    ("GET", r"/admin/calculators/([^/]+)/export", "admin.export_calculator"),
    ("GET", r"/admin/algorithms/([^/]+)/export", "admin.export_algorithm"),
    ("POST", r"/admin/algorithms/validate", "admin.validate_algorithm"),
    ("POST", r"/admin/calculators/validate", "admin.validate_ranges"),
]
_COMPILED = [(method, re.compile(pattern), action) for method, pattern, action in _ACTIONS]


def classify_request(method: str, path: str) -> tuple[str, Optional[str]]:
    """Return (action, resource id) for a request.

    Unlisted GETs are catalog or state reads ("read"); anything else is
    logged as "other" so nothing goes unrecorded.
    """
    for action_method, pattern, action in _COMPILED:
        if method != action_method:
            continue
        match = pattern.fullmatch(path)
        if match:
            return action, match.group(1) if pattern.groups else None
    return ("read" if method in ("GET", "HEAD") else "other"), None


def outcome(status_code: int) -> str:
    if status_code < 400:
        return "ok"
    if status_code < 500:
        return "rejected"
    return "error"


class AuditMiddleware(BaseHTTPMiddleware):
    """One audit line per request, keyed by clinical action."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration_ms = round((time.time() - start_time) * 1000, 1)

        user_id = getattr(request.state, "user_id", None) or "anonymous"
        action, resource = classify_request(request.method, request.url.path)
        logger.info(
            "user=%s action=%s resource=%s status=%d outcome=%s duration_ms=%.1f",
            user_id,
            action,
            resource or "-",
            response.status_code,
            outcome(response.status_code),
            duration_ms,
        )
        return response
