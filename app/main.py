"""FastAPI application entry point.

Serves the Process API: liveness, readiness, metrics and data ingest.

Usage:
    process-api                      (see app/server.py)
    python -m app.main
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.cache import CacheClient
from app.config import Settings, settings as default_settings
from app.database import ProcessLogStore
from app.lifecycle import ShutdownCoordinator
from app.middleware import install_middleware
from app.routers.health import router as health_router
from app.routers.metrics import router as metrics_router
from app.routers.process import router as process_router
from app.services.metrics_service import MetricsAggregator

logger = logging.getLogger(__name__)


# ── Logging ──────────────────────────────────────────────────────────────

def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )


# ── Lifespan (startup + shutdown) ────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    logger.info(
        "Server running on port %s in %s mode",
        state.settings.APP_PORT,
        state.settings.APP_ENV,
    )
    state.metrics.reset()
    await state.store.init()
    yield
    await state.coordinator.finish()


# ── Exception handlers ───────────────────────────────────────────────────

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and known paths with the wrong method look the same.
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ── Application factory ──────────────────────────────────────────────────

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProcessLogStore] = None,
    cache: Optional[CacheClient] = None,
    metrics: Optional[MetricsAggregator] = None,
    coordinator: Optional[ShutdownCoordinator] = None,
) -> FastAPI:
    """Build an app around its collaborators; defaults come from *settings*."""
    settings = settings or default_settings
    if store is None:
        store = ProcessLogStore(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            idle_timeout=settings.DB_IDLE_TIMEOUT,
        )
    if cache is None:
        cache = CacheClient(
            settings.REDIS_HOST,
            settings.REDIS_PORT,
            timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    coordinator = coordinator or ShutdownCoordinator()
    coordinator.add_cleanup(store.close)
    coordinator.add_cleanup(cache.close)

    app = FastAPI(
        title="Process API",
        description=(
            "Liveness, readiness and metrics endpoints plus a JSON ingest "
            "endpoint backed by PostgreSQL, with Redis checked for readiness."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.cache = cache
    app.state.metrics = metrics or MetricsAggregator()
    app.state.coordinator = coordinator

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    install_middleware(app)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(process_router)
    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


# ── Dev entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    from app.server import main

    main()
