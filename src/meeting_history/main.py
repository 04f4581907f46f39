"""FastAPI application factory.

Creates the app with CORS, lifespan events for database initialization and
meeting history service wiring, the v1 API router, and /metrics.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from src.meeting_history.api.v1.router import router as v1_router
from src.meeting_history.config import get_settings
from src.meeting_history.core.database import close_db, init_db
from src.meeting_history.core.redis import close_redis
from src.meeting_history.observability.logging_setup import configure_structlog
from src.meeting_history.observability.metrics import get_metrics_response
from src.meeting_history.service import create_meeting_history_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB and the service on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()

    # The journal covers for the remote store, so a database that is down
    # at startup must not keep the service from coming up.
    try:
        await init_db()
    except Exception:
        log.warning("startup.init_db_failed", exc_info=True)

    app.state.meeting_history = create_meeting_history_service(settings)
    log.info(
        "startup.meeting_history_initialized",
        cache_ttl_seconds=settings.MEETING_CACHE_TTL_SECONDS,
        environment=settings.ENVIRONMENT.value,
    )

    yield

    app.state.meeting_history = None
    await close_db()
    await close_redis()
    log.info("shutdown.complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Meeting History API",
        version="0.1.0",
        description="Reconciled meeting history and statistics for BA training sessions",
        lifespan=lifespan,
    )

    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
