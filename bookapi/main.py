"""
FastAPI Application Entry Point

create_app() assembles the Book Inventory API:

1. Logging
   - logging.basicConfig at import time, level from LOG_LEVEL

2. Lifespan
   - startup: log configuration, warm the cache store
   - shutdown: drain the background executor, close the cache store

3. Middleware
   - slowapi rate limiting, CORS, security headers, request logging

4. Exception Handlers
   - domain errors, validation errors, database and unexpected errors all
     rendered as application/problem+json (see bookapi.errors)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from bookapi import __version__
from bookapi.config import get_settings
from bookapi.errors import register_exception_handlers
from bookapi.middleware import register_middlewares
from bookapi.routers import books_router
from bookapi.services.cache import close_cache_store, get_cache_stats, get_cache_store
from bookapi.services.rate_limiter import limiter, rate_limit_exceeded_handler
from bookapi.services.tasks import get_executor, shutdown_executor

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name} {__version__} ({settings.environment})...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API prefix: {settings.api_prefix}")

    store = get_cache_store()
    cache_status = store.stats().get("status")
    if cache_status == "connected":
        logger.info(f"Caching enabled ({store.backend})")
    else:
        logger.warning(f"Cache backend {store.backend} is {cache_status} - reads go to the database")

    get_executor()

    yield

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    shutdown_executor()
    close_cache_store()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Book Inventory API

Manage a catalogue of books with stock levels.

### Authentication
Send `Authorization: Bearer <token>`. The token's `roles` claim decides access:
- **USER**: read, search, browse by category
- **LIBRARIAN**: everything USER can, plus create and update
- **ADMIN**: everything, including delete and the low-stock report

### Concurrency
Every book carries a `version`. Concurrent updates to the same book are
detected and the loser receives **409 Optimistic Lock Conflict**.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS, security headers, request logging
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Request-ID", "X-Process-Time"],
    )
    register_middlewares(app)

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    register_exception_handlers(app)

    # -------------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------------
    app.include_router(books_router, prefix=settings.api_prefix)

    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and report cache, executor and rate-limit status.",
    )
    def health_check() -> dict:
        """Liveness/readiness probe; no authentication required."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "cache": get_cache_stats(),
            "executor": get_executor().stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
                "write_limit": settings.rate_limit_write,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
    )
    def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": __version__,
            "books": f"{settings.api_prefix}/books",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


# Development server: python -m bookapi.main
# Production: uvicorn bookapi.main:app --host 0.0.0.0 --port 8080
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookapi.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
