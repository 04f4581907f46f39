"""Aggregate statistics over a reconciled meeting set.

compute_stats() is a pure function of its input; callers pass the current
reconciled sequence. Legacy session kinds are folded through
LEGACY_SESSION_KINDS before counting, and every ratio is 0.0 when there are
no meetings.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from types import MappingProxyType

from src.meeting_history.records.schemas import MeetingRecord, MeetingStats, SessionKind

LEGACY_SESSION_KINDS = MappingProxyType(
    {
        SessionKind.INDIVIDUAL: SessionKind.VOICE_TRANSCRIPT,
        SessionKind.GROUP: SessionKind.VOICE_TRANSCRIPT,
    }
)


def canonical_session_kind(kind: SessionKind) -> SessionKind:
    """Map a legacy session kind onto its current bucket."""
    return LEGACY_SESSION_KINDS.get(kind, kind)


def _ratio(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return part / total


def compute_stats(records: Sequence[MeetingRecord]) -> MeetingStats:
    """Count meetings by kind, project, and deliverable for a reconciled set.

    Args:
        records: Reconciled meetings (already deduplicated).

    Returns:
        MeetingStats; all zeros for an empty input.
    """
    total = len(records)
    kinds = Counter(canonical_session_kind(r.session_kind) for r in records)

    voice_only = kinds.get(SessionKind.VOICE_ONLY, 0)
    voice_transcript = kinds.get(SessionKind.VOICE_TRANSCRIPT, 0)
    deliverables = sum(1 for r in records if r.summary_text.strip())

    return MeetingStats(
        total_meetings=total,
        voice_only_meetings=voice_only,
        voice_transcript_meetings=voice_transcript,
        unknown_kind_meetings=kinds.get(SessionKind.UNKNOWN, 0),
        by_session_kind={kind.value: count for kind, count in sorted(kinds.items())},
        unique_projects=len({r.project_label for r in records}),
        deliverables_created=deliverables,
        voice_meetings=voice_only,
        transcript_meetings=voice_transcript,
        voice_only_ratio=_ratio(voice_only, total),
        voice_transcript_ratio=_ratio(voice_transcript, total),
        deliverable_ratio=_ratio(deliverables, total),
    )
