"""Meeting reconciliation -- merge remote store and local journal into one view.

Pipeline per call:
1. Fetch both sources concurrently, each under its own timeout. A failed or
   timed-out source contributes nothing; the other is still used.
2. Concatenate candidates, remote first.
3. validate() each candidate; rejects are logged and counted, never raised.
4. normalize() the survivors.
5. Dedupe by id keeping the first occurrence, so the remote version wins.
6. Sort by created_at descending (id descending breaks ties).

Only step 1 awaits. Steps 2-6 are synchronous and deterministic, so two
calls over unchanged source data return equal tuples.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass

import structlog

from src.meeting_history.observability.metrics import (
    reconcile_duration_seconds,
    records_rejected_total,
    source_failures_total,
)
from src.meeting_history.records.normalization import normalize
from src.meeting_history.records.schemas import MeetingRecord, RawRecord, RecordSource
from src.meeting_history.records.validation import validate
from src.meeting_history.sources.adapter import (
    AdapterUnavailable,
    LocalMeetingJournal,
    RemoteMeetingStore,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of one reconciliation pass."""

    records: tuple[MeetingRecord, ...]
    sources_ok: frozenset[RecordSource]
    sources_failed: frozenset[RecordSource]

    @property
    def available(self) -> bool:
        """True when at least one source answered."""
        return bool(self.sources_ok)


class Reconciler:
    """Assembles a user's meetings from the remote store and local journal.

    Args:
        remote: Authoritative meeting store.
        journal: Transient local journal.
        remote_timeout: Seconds before a remote fetch counts as failed.
        journal_timeout: Seconds before a journal scan counts as failed.
    """

    def __init__(
        self,
        remote: RemoteMeetingStore,
        journal: LocalMeetingJournal,
        remote_timeout: float = 5.0,
        journal_timeout: float = 2.0,
    ) -> None:
        self._remote = remote
        self._journal = journal
        self._remote_timeout = remote_timeout
        self._journal_timeout = journal_timeout

    async def _fetch(
        self,
        source: RecordSource,
        fetch: Callable[[str], Awaitable[Sequence[RawRecord]]],
        user_id: str,
        timeout: float,
    ) -> list[RawRecord] | None:
        """Run one source fetch. Returns None if the source failed."""
        try:
            return list(await asyncio.wait_for(fetch(user_id), timeout=timeout))
        except asyncio.TimeoutError:
            failure = AdapterUnavailable(source, f"timed out after {timeout}s")
        except AdapterUnavailable as exc:
            failure = exc
        except Exception as exc:
            failure = AdapterUnavailable(source, repr(exc))

        source_failures_total.labels(source=source.value).inc()
        logger.warning(
            "reconciler.source_failed",
            user_id=user_id,
            source=source.value,
            error=failure.reason,
        )
        return None

    def merge(
        self, user_id: str, candidates: Iterable[RawRecord]
    ) -> tuple[MeetingRecord, ...]:
        """Validate, normalize, dedupe, and order raw candidates.

        Candidates must be supplied in precedence order: for a repeated id,
        the first valid occurrence is kept.
        """
        unique: dict[str, MeetingRecord] = {}
        for candidate in candidates:
            result = validate(candidate, user_id)
            if not result.accepted:
                payload = candidate.payload if isinstance(candidate.payload, dict) else {}
                records_rejected_total.labels(
                    reason=result.reason.value, source=candidate.source.value
                ).inc()
                logger.info(
                    "reconciler.record_rejected",
                    user_id=user_id,
                    meeting_id=payload.get("id"),
                    source=candidate.source.value,
                    key=candidate.key,
                    reason=result.reason.value,
                    rule=result.detail,
                )
                continue

            record = normalize(candidate)
            if record.id in unique:
                logger.debug(
                    "reconciler.duplicate_dropped",
                    meeting_id=record.id,
                    source=candidate.source.value,
                )
                continue
            unique[record.id] = record

        return tuple(
            sorted(unique.values(), key=lambda r: (r.created_at, r.id), reverse=True)
        )

    async def run(self, user_id: str) -> Reconciliation:
        """Fetch both sources and merge them.

        Never raises for source failures; check Reconciliation.available
        to tell an empty history from an unreachable one.
        """
        start_time = time.perf_counter()

        remote_raw, journal_raw = await asyncio.gather(
            self._fetch(
                RecordSource.REMOTE,
                self._remote.list_meetings,
                user_id,
                self._remote_timeout,
            ),
            self._fetch(
                RecordSource.JOURNAL,
                self._journal.scan_meetings,
                user_id,
                self._journal_timeout,
            ),
        )

        fetched = {RecordSource.REMOTE: remote_raw, RecordSource.JOURNAL: journal_raw}
        sources_ok = frozenset(s for s, raw in fetched.items() if raw is not None)
        sources_failed = frozenset(s for s, raw in fetched.items() if raw is None)

        candidates = (remote_raw or []) + (journal_raw or [])
        records = self.merge(user_id, candidates)

        duration = time.perf_counter() - start_time
        reconcile_duration_seconds.observe(duration)

        if not sources_ok:
            logger.error(
                "reconciler.all_sources_failed",
                user_id=user_id,
                duration_ms=round(duration * 1000, 2),
            )
        else:
            logger.info(
                "reconciler.completed",
                user_id=user_id,
                remote_candidates=len(remote_raw or []),
                journal_candidates=len(journal_raw or []),
                records=len(records),
                sources_failed=sorted(s.value for s in sources_failed),
                duration_ms=round(duration * 1000, 2),
            )

        return Reconciliation(
            records=records,
            sources_ok=sources_ok,
            sources_failed=sources_failed,
        )

    async def reconcile(
        self, user_id: str, fallback: Sequence[MeetingRecord] = ()
    ) -> tuple[MeetingRecord, ...]:
        """Reconciled meetings for user_id, newest first.

        Args:
            user_id: The requesting user.
            fallback: Returned instead when both sources fail.
        """
        outcome = await self.run(user_id)
        if not outcome.available:
            return tuple(fallback)
        return outcome.records
