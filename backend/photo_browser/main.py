"""
Photo Browser API — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app()` wires middleware, exception handlers, routers and the
       per-app rate limiters; `app` is the module-level instance uvicorn
       serves, and `run()` backs the `photo-browser-api` console script.

Request pipeline (outermost first):
    Security Headers → CORS → GZip → Request ID → Logging → API Rate Limit
        → Router → route dependencies (tier limit → auth → validation)
        → handler → service
    Errors raised anywhere below the router go to the central handlers in
    error_handlers.py; the rate-limit middleware renders its own 429 with
    the same formatter.

Lifecycle:
    Startup:   logging, production config check (logged, not fatal),
               local storage root creation
    Shutdown:  dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from photo_browser import __version__
from photo_browser.config import settings
from photo_browser.database import dispose_engine
from photo_browser.error_handlers import register_exception_handlers
from photo_browser.exceptions import StorageError
from photo_browser.middleware.logging import RequestLoggingMiddleware
from photo_browser.middleware.rate_limit import RateLimitMiddleware, build_rate_limiters
from photo_browser.middleware.request_id import RequestIDMiddleware
from photo_browser.middleware.security_headers import SecurityHeadersMiddleware
from photo_browser.routes import albums, auth, files, health, photos, users
from photo_browser.services.storage import LocalImageStorage, get_image_storage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] photo_browser.services.album_service: ...
    Third-party loggers that are chatty at INFO are raised to WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "botocore", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Photo Browser API v%s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    try:
        storage = get_image_storage()
    except StorageError as e:
        # Uploads will keep failing with 500 until the backend is configured
        logger.error("Storage backend unavailable: %s", e.message)
    else:
        if isinstance(storage, LocalImageStorage):
            storage.ensure_root()
            logger.info("Storage directory: %s", storage.root)
        else:
            logger.info("Storage backend: %s", settings.storage_backend)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Photo Browser API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Assemble a fresh application.

    Each instance gets its own rate limiter counters, so tests can build one
    app per test without leaking request counts between them.
    """
    app = FastAPI(
        title="Photo Browser API",
        description="Albums and photos with JWT authentication, image resizing and object storage.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.rate_limiters = build_rate_limiters(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Starlette runs middleware in REVERSE order of addition: the last one
    # added is the outermost. Added innermost first:
    #   RateLimit → Logging → RequestID → GZip → CORS → SecurityHeaders
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    # Bodies under 500 bytes are sent uncompressed
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(albums.router)
    app.include_router(photos.router)
    app.include_router(users.router)
    app.include_router(files.router)

    return app


app = create_app()


def run() -> None:
    """Entry point of the `photo-browser-api` console script."""
    uvicorn.run(
        "photo_browser.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
