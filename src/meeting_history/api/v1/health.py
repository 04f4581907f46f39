"""Health check endpoints.

Provides liveness (/v1/health) and readiness (/v1/health/ready). Readiness
reports each meeting source separately: the service stays usable with one
source down, so a single failure is "degraded", not unavailable.
"""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from src.meeting_history.config import get_settings
from src.meeting_history.core.database import get_engine
from src.meeting_history.core.redis import get_redis_pool

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check. No external dependencies are checked."""
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


async def _check_sources() -> dict:
    """Check remote store and journal connectivity. Returns check results dict."""
    checks: dict = {"remote_store": "ok", "journal": "ok"}

    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        checks["remote_store"] = "error"
        checks["remote_store_error"] = str(e)

    try:
        redis = get_redis_pool()
        pong = await redis.ping()
        if not pong:
            checks["journal"] = "error"
            checks["journal_error"] = "PING did not return PONG"
    except Exception as e:
        checks["journal"] = "error"
        checks["journal_error"] = str(e)

    return checks


@router.get("/health/ready")
async def readiness_check():
    """Readiness check: 200 while at least one meeting source is reachable."""
    checks = await _check_sources()
    healthy = [name for name in ("remote_store", "journal") if checks[name] == "ok"]

    if len(healthy) == 2:
        state = "ready"
    elif healthy:
        state = "degraded"
    else:
        state = "unavailable"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": state, "checks": checks},
    )
