"""REST endpoints for a user's meeting history.

Thin layer over MeetingHistoryService (read from app.state). The service
never raises for data problems, so these endpoints return 200 with possibly
empty payloads; 503 only means the service was not initialized.

Authentication is handled upstream; user_id is taken from the path.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from src.meeting_history.records.schemas import MeetingRecord, MeetingStats

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["meetings"])


def _get_meeting_history(request: Request) -> Any:
    """Retrieve MeetingHistoryService from app.state, 503 if not available."""
    service = getattr(request.app.state, "meeting_history", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Meeting history service not initialized",
        )
    return service


@router.get("/users/{user_id}/meetings", response_model=list[MeetingRecord])
async def list_meetings(
    user_id: str,
    request: Request,
    force_refresh: bool = Query(False),
) -> list[MeetingRecord]:
    """All reconciled meetings for the user, newest first."""
    service = _get_meeting_history(request)
    return await service.get_all_user_meetings(user_id, force_refresh=force_refresh)


@router.get("/users/{user_id}/meetings/recent", response_model=list[MeetingRecord])
async def list_recent_meetings(
    user_id: str,
    request: Request,
    limit: int | None = Query(None, ge=0, le=100),
) -> list[MeetingRecord]:
    """The newest meetings for dashboard widgets."""
    service = _get_meeting_history(request)
    return await service.get_recent_meetings(user_id, limit=limit)


@router.get("/users/{user_id}/meetings/stats", response_model=MeetingStats)
async def get_meeting_stats(user_id: str, request: Request) -> MeetingStats:
    """Aggregate statistics over the user's current meetings."""
    service = _get_meeting_history(request)
    return await service.get_meeting_stats(user_id)


@router.post("/users/{user_id}/meetings/refresh", response_model=list[MeetingRecord])
async def refresh_meetings(user_id: str, request: Request) -> list[MeetingRecord]:
    """Force a reconciliation for the user, bypassing the cache."""
    service = _get_meeting_history(request)
    return await service.refresh_data(user_id)


@router.delete("/meetings/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_meeting_cache(
    request: Request,
    user_id: str | None = Query(None),
) -> Response:
    """Invalidate cached meetings after a write, for one user or everyone."""
    service = _get_meeting_history(request)
    service.clear_cache(user_id)
    logger.info("meetings_api.cache_cleared", user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
