"""Normalization of accepted raw candidates into MeetingRecord.

normalize() is total over anything validate() accepted: every optional
field that is absent or of the wrong shape falls back to its default
instead of raising.
"""

from __future__ import annotations

from typing import Any

from src.meeting_history.records.fields import lookup, non_empty_str, parse_timestamp
from src.meeting_history.records.schemas import (
    UNKNOWN_PROJECT_LABEL,
    MeetingRecord,
    MeetingStatus,
    MessageCounts,
    RawRecord,
    SessionKind,
)

_SESSION_KINDS = {kind.value: kind for kind in SessionKind}
_STATUSES = {status.value: status for status in MeetingStatus}


# ── Coercion Helpers ─────────────────────────────────────────────────────────


def _count(value: Any) -> int:
    """Non-negative int, or 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return max(int(value), 0)
    return 0


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _entry_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [dict(item) for item in value if isinstance(item, dict)]


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _score(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:
        return None
    return float(value)


def _session_kind(value: Any) -> SessionKind:
    if isinstance(value, str):
        return _SESSION_KINDS.get(value.strip().lower(), SessionKind.UNKNOWN)
    return SessionKind.UNKNOWN


def _status(value: Any, completed: bool) -> MeetingStatus:
    if isinstance(value, str):
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        if key in _STATUSES:
            return _STATUSES[key]
    return MeetingStatus.COMPLETED if completed else MeetingStatus.IN_PROGRESS


def project_label_for(payload: dict[str, Any]) -> str:
    """Project name, else the project id as a stand-in, else the sentinel."""
    return (
        non_empty_str(lookup(payload, "project_label"))
        or non_empty_str(lookup(payload, "project_id"))
        or UNKNOWN_PROJECT_LABEL
    )


# ── Entry Point ──────────────────────────────────────────────────────────────


def normalize(accepted: RawRecord) -> MeetingRecord:
    """Fill every optional attribute of an accepted candidate with its default.

    Args:
        accepted: A RawRecord for which validate() returned ACCEPTED.

    Returns:
        A MeetingRecord with no missing fields.
    """
    payload = accepted.payload or {}

    updated_at = parse_timestamp(lookup(payload, "updated_at"))
    created_at = parse_timestamp(lookup(payload, "created_at")) or updated_at
    completed_at = parse_timestamp(lookup(payload, "completed_at"))

    return MeetingRecord(
        id=str(payload["id"]).strip(),
        owner_id=str(lookup(payload, "owner_id")),
        project_id=non_empty_str(lookup(payload, "project_id")),
        project_label=project_label_for(payload),
        created_at=created_at,
        updated_at=updated_at,
        completed_at=completed_at,
        session_kind=_session_kind(lookup(payload, "session_kind")),
        status=_status(lookup(payload, "status"), completed_at is not None),
        duration_seconds=_count(lookup(payload, "duration_seconds")),
        message_counts=MessageCounts(
            total=_count(lookup(payload, "total_messages")),
            user=_count(lookup(payload, "user_messages")),
            counterpart=_count(lookup(payload, "counterpart_messages")),
        ),
        participant_names=_str_list(lookup(payload, "participant_names")),
        participant_roles=_str_list(lookup(payload, "participant_roles")),
        participant_ids=_str_list(lookup(payload, "participant_ids")),
        transcript=_entry_list(lookup(payload, "transcript")),
        raw_chat=_entry_list(lookup(payload, "raw_chat")),
        topics_discussed=_str_list(lookup(payload, "topics_discussed")),
        key_insights=_str_list(lookup(payload, "key_insights")),
        meeting_notes=_text(lookup(payload, "meeting_notes")),
        summary_text=_text(lookup(payload, "summary_text")),
        effectiveness_score=_score(lookup(payload, "effectiveness_score")),
    )
