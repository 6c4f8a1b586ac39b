import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from algorithms import registry as algorithm_registry
from algorithms.errors import AlgorithmDefinitionError
from api.admin import router as admin_router
from api import auth
from api.auth import AuthMiddleware
from api.middleware import add_cors_middleware
from api.rate_limit import limiter, rate_limit_exceeded_handler
from api.routes import router
from calculators import registry as calculator_registry
from server import resolve_port, start_server
from storage import get_session_store

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    get_session_store()
    _logger.info(
        f"Loaded {len(calculator_registry)} calculators and "
        f"{len(algorithm_registry)} algorithms (auth {'on' if auth.REQUIRE_AUTH else 'off'})"
    )
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Clinical Calculators", version="1.0.0", lifespan=lifespan)
    # Middleware order (inner -> outer): Auth -> Audit -> CORS/no-cache
    app.add_middleware(AuthMiddleware)
    if auth.REQUIRE_AUTH:
        from api.audit import AuditMiddleware

        app.add_middleware(AuditMiddleware)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    add_cors_middleware(app)

    @app.exception_handler(AlgorithmDefinitionError)
    async def _definition_error_handler(request: Request, exc: AlgorithmDefinitionError):
        _logger.error(f"Invalid algorithm definition on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Algorithm definition is invalid."},
        )

    # Catch-all so unhandled errors still return JSON
    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error."},
        )

    app.include_router(router)
    app.include_router(admin_router)
    return app


if __name__ == "__main__":
    app = create_app()
    start_server(app, resolve_port())
