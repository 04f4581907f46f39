"""Short-lived per-user cache of reconciled meetings with request coalescing.

The TTL is deliberately around one second: the cache absorbs bursts of
near-simultaneous reads (a dashboard rendering several widgets), it does
not serve long-lived data.

Concurrency model (single event loop):
- At most one refresh task per user is attached to the entry at a time.
  Every get() that finds the entry stale joins it via asyncio.shield, so a
  cancelled caller never cancels the shared refresh.
- invalidate() detaches a pending refresh and bumps the entry generation.
  The detached task still stores its result, but as stale, and never over
  a result from a later generation.
- When both sources fail, the previous records are served (even past TTL)
  and the timestamp is left alone so the next get() retries.
- Every get() returns deep copies, so a caller mutating a record's lists
  never changes what later readers or the fallback see.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from src.meeting_history.core.clock import Clock, MonotonicClock
from src.meeting_history.observability.metrics import cache_requests_total
from src.meeting_history.reconciler import Reconciler
from src.meeting_history.records.schemas import MeetingRecord

logger = structlog.get_logger(__name__)


def _detached(records: tuple[MeetingRecord, ...]) -> tuple[MeetingRecord, ...]:
    # Callers get their own copies; stored records back every later read
    return tuple(record.model_copy(deep=True) for record in records)


def _log_refresh_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("meeting_cache.refresh_failed", error=repr(exc), exc_info=exc)


@dataclass
class _CacheEntry:
    records: tuple[MeetingRecord, ...] | None = None
    stored_at: float = 0.0
    # Generation the stored records were fetched under
    stored_generation: int = -1
    # Bumped by invalidate(); records from older generations are stale
    generation: int = 0
    inflight: asyncio.Task | None = None


class MeetingCache:
    """Per-user cache in front of the Reconciler.

    Args:
        reconciler: Produces fresh reconciled sequences.
        ttl_seconds: How long a stored sequence is served without refresh.
        clock: Time source; defaults to the monotonic clock.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        ttl_seconds: float = 1.0,
        clock: Clock | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._ttl = ttl_seconds
        self._clock = clock or MonotonicClock()
        self._entries: dict[str, _CacheEntry] = {}

    def _is_fresh(self, entry: _CacheEntry) -> bool:
        return (
            entry.records is not None
            and entry.stored_generation == entry.generation
            and self._clock.now() - entry.stored_at < self._ttl
        )

    async def get(
        self, user_id: str, force_refresh: bool = False
    ) -> tuple[MeetingRecord, ...]:
        """Return the user's reconciled meetings, refreshing if needed.

        Args:
            user_id: The requesting user.
            force_refresh: Skip the freshness check. Still coalesces with a
                refresh that is already in flight.
        """
        entry = self._entries.setdefault(user_id, _CacheEntry())

        if not force_refresh and self._is_fresh(entry):
            cache_requests_total.labels(outcome="hit").inc()
            logger.debug("meeting_cache.hit", user_id=user_id)
            return _detached(entry.records)

        if entry.inflight is not None:
            cache_requests_total.labels(outcome="coalesced").inc()
            logger.debug("meeting_cache.coalesced", user_id=user_id)
        else:
            cache_requests_total.labels(outcome="miss").inc()
            entry.inflight = asyncio.ensure_future(
                self._refresh(user_id, entry, entry.generation)
            )
            entry.inflight.add_done_callback(_log_refresh_failure)

        return _detached(await asyncio.shield(entry.inflight))

    async def _refresh(
        self, user_id: str, entry: _CacheEntry, generation: int
    ) -> tuple[MeetingRecord, ...]:
        try:
            outcome = await self._reconciler.run(user_id)
            if not outcome.available:
                fallback = entry.records or ()
                logger.warning(
                    "meeting_cache.serving_fallback",
                    user_id=user_id,
                    records=len(fallback),
                    has_previous=entry.records is not None,
                )
                return fallback

            if entry.stored_generation > generation:
                # A refresh started after an invalidation has already landed
                return outcome.records

            entry.records = outcome.records
            entry.stored_at = self._clock.now()
            entry.stored_generation = generation
            if generation != entry.generation:
                logger.info(
                    "meeting_cache.stored_stale",
                    user_id=user_id,
                    generation=generation,
                    current_generation=entry.generation,
                )
            return outcome.records
        finally:
            if entry.inflight is asyncio.current_task():
                entry.inflight = None

    def invalidate(self, user_id: str | None = None) -> None:
        """Drop cached meetings for one user, or for every user.

        A refresh already in flight is detached rather than cancelled: its
        callers still receive its result, but the next get() starts anew.
        """
        user_ids = [user_id] if user_id is not None else list(self._entries)
        for uid in user_ids:
            entry = self._entries.get(uid)
            if entry is None:
                continue
            if entry.inflight is not None and not entry.inflight.done():
                entry.generation += 1
                entry.inflight = None
                entry.records = None
            else:
                del self._entries[uid]

        if user_id is not None:
            logger.info("meeting_cache.invalidated", user_id=user_id)
        else:
            logger.info("meeting_cache.invalidated_all", users=len(user_ids))
