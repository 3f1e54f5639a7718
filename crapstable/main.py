"""
Craps Table server entry point.
FastAPI application hosting player accounts and their craps tables.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import uvicorn

from crapstable.config import settings
from crapstable.core.exceptions import CrapsTableError
from crapstable.core.logger import init_logging, get_logger
from crapstable.core.rate_limit import limiter
from crapstable.routers import accounts, table

# Initialize logging first
init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")

# ==================== UVLoop Integration =====================

try:
    import uvloop

    uvloop.install()
    logger.info("uvloop installed and enabled.")
except ImportError:
    logger.info("uvloop not found, using default asyncio event loop.")


# ==================== Security Headers Middleware ====================


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Security headers on every response. Balances and table state are never cached."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ==================== Exception Handlers ====================


async def craps_table_error_handler(request: Request, exc: CrapsTableError):
    """Service errors carry their own status code."""
    content = {"error": exc.message}
    reason = getattr(exc, "reason", None)
    if reason:
        content["reason"] = reason
    return JSONResponse(status_code=exc.status_code, content=content)


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions gracefully."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.server.debug else None,
        },
    )


# ==================== Application Setup ====================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.server.name,
        docs_url="/docs" if settings.server.debug else None,
        redoc_url=None,
        default_response_class=ORJSONResponse,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(CrapsTableError, craps_table_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware (the game client runs on another origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"status": "ok", "message": "Craps Game API is running!"}

    app.include_router(accounts.router, prefix="/api")
    app.include_router(table.router, prefix="/api/table")

    return app


app = create_app()

logger.info(f"Application '{settings.server.name}' initialized")
logger.info(f"Debug mode: {settings.server.debug}")


# ==================== Main Entry Point ====================


def run():
    logger.info(f"Starting server on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        "crapstable.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug,
    )


if __name__ == "__main__":
    run()
