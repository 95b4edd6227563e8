"""Shortlink Service - Main FastAPI Application.

A URL shortening service with:
- Create short links, with optional custom codes and expiry
- Redirect to original URLs
- Click counting and per-click analytics
- Soft delete of links
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import Settings, get_settings
from .core.database import Database
from .core.errors import ShortLinkError
from .api.routes import analytics_router, health_router, links_router, redirect_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def _error(status_code: int, message: str, stack: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if stack:
        content["stack"] = stack
    return JSONResponse(status_code=status_code, content=content)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Render every error as ``{"success": false, "message": ...}``."""

    @app.exception_handler(ShortLinkError)
    async def shortlink_error_handler(request: Request, exc: ShortLinkError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """General exception handler."""
        logger.error(f"Unhandled Exception: {exc}", exc_info=exc)
        stack = None
        if settings.is_development:
            stack = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return _error(500, "Internal server error", stack)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings, defaults to the environment.

    Returns:
        Configured FastAPI app. Its database is opened on startup and
        closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown events."""
        logger.info(f"Starting {settings.app_title}...")
        db = Database(settings.database_url)
        db.connect()
        app.state.db = db
        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.app_title}...")
            db.close()

    app = FastAPI(
        title=settings.app_title,
        description=settings.app_description,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    app.include_router(health_router)
    app.include_router(links_router)
    app.include_router(analytics_router)
    # Catch-all short code route goes last
    app.include_router(redirect_router)

    return app
