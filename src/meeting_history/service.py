"""Meeting history service -- the entry point the rest of the application calls.

Wraps MeetingCache with the public read operations. None of these raise
for data problems: the worst case is an empty list or zeroed statistics, so
dashboards can always render something.

Usage:
    service = create_meeting_history_service()
    meetings = await service.get_all_user_meetings("user-123")
    recent = await service.get_recent_meetings("user-123", limit=3)
    stats = await service.get_meeting_stats("user-123")

    # After writing a new meeting somewhere else
    service.clear_cache("user-123")
"""

from __future__ import annotations

import structlog

from src.meeting_history.cache import MeetingCache
from src.meeting_history.config import Settings, get_settings
from src.meeting_history.reconciler import Reconciler
from src.meeting_history.records.schemas import MeetingRecord, MeetingStats
from src.meeting_history.stats import compute_stats

logger = structlog.get_logger(__name__)


class MeetingHistoryService:
    """Public read API over reconciled meeting history.

    Args:
        cache: MeetingCache in front of the reconciler.
        default_recent_limit: Slice size for get_recent_meetings() when
            no limit is given.
    """

    def __init__(self, cache: MeetingCache, default_recent_limit: int = 3) -> None:
        self._cache = cache
        self._default_recent_limit = default_recent_limit

    async def get_all_user_meetings(
        self, user_id: str, force_refresh: bool = False
    ) -> list[MeetingRecord]:
        """All valid meetings for user_id, newest first."""
        if not user_id:
            logger.warning("meeting_history.missing_user_id")
            return []

        try:
            records = await self._cache.get(user_id, force_refresh=force_refresh)
        except Exception:
            logger.exception("meeting_history.load_failed", user_id=user_id)
            return []
        return list(records)

    async def get_recent_meetings(
        self, user_id: str, limit: int | None = None
    ) -> list[MeetingRecord]:
        """The newest `limit` meetings for user_id."""
        if limit is None:
            limit = self._default_recent_limit
        if limit <= 0:
            return []
        meetings = await self.get_all_user_meetings(user_id)
        return meetings[:limit]

    async def get_meeting_stats(self, user_id: str) -> MeetingStats:
        """Aggregate statistics over the user's current meetings."""
        meetings = await self.get_all_user_meetings(user_id)
        stats = compute_stats(meetings)
        logger.debug(
            "meeting_history.stats_computed",
            user_id=user_id,
            total_meetings=stats.total_meetings,
            unique_projects=stats.unique_projects,
        )
        return stats

    async def refresh_data(self, user_id: str) -> list[MeetingRecord]:
        """Force a reconciliation for user_id and return the result."""
        logger.info("meeting_history.refresh_requested", user_id=user_id)
        return await self.get_all_user_meetings(user_id, force_refresh=True)

    def clear_cache(self, user_id: str | None = None) -> None:
        """Invalidate cached meetings for one user, or all users when None."""
        self._cache.invalidate(user_id)


def create_meeting_history_service(
    settings: Settings | None = None,
) -> MeetingHistoryService:
    """Wire the service to the PostgreSQL store and Redis journal."""
    from src.meeting_history.core.database import get_session
    from src.meeting_history.core.redis import get_redis_pool
    from src.meeting_history.sources.postgres import PostgresMeetingStore
    from src.meeting_history.sources.redis_journal import RedisMeetingJournal

    settings = settings or get_settings()

    reconciler = Reconciler(
        remote=PostgresMeetingStore(session_factory=get_session),
        journal=RedisMeetingJournal(
            get_redis_pool(),
            namespace=settings.JOURNAL_KEY_NAMESPACE,
            entry_ttl_seconds=settings.JOURNAL_ENTRY_TTL_SECONDS,
        ),
        remote_timeout=settings.REMOTE_FETCH_TIMEOUT_SECONDS,
        journal_timeout=settings.JOURNAL_FETCH_TIMEOUT_SECONDS,
    )
    cache = MeetingCache(reconciler, ttl_seconds=settings.MEETING_CACHE_TTL_SECONDS)
    return MeetingHistoryService(
        cache, default_recent_limit=settings.RECENT_MEETINGS_LIMIT
    )
