"""Lenient field access for raw meeting payloads.

The remote store uses snake_case column names while older journal entries
were written with camelCase keys. FIELD_ALIASES maps each canonical field to
the keys it may appear under, in lookup order.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "owner_id": ("user_id", "owner_id", "ownerId", "userId"),
    "project_id": ("project_id", "projectId"),
    "project_label": ("project_name", "project_label", "projectLabel", "projectName"),
    "created_at": ("created_at", "createdAt"),
    "updated_at": ("updated_at", "updatedAt"),
    "completed_at": ("completed_at", "completedAt"),
    "session_kind": ("meeting_type", "session_kind", "sessionKind", "meetingType"),
    "status": ("status",),
    "duration_seconds": ("duration", "duration_seconds", "durationSeconds"),
    "total_messages": ("total_messages", "totalMessages"),
    "user_messages": ("user_messages", "userMessages"),
    "counterpart_messages": ("ai_messages", "aiMessages", "counterpart_messages"),
    "participant_names": ("stakeholder_names", "participant_names", "participantNames"),
    "participant_roles": ("stakeholder_roles", "participant_roles", "participantRoles"),
    "participant_ids": ("stakeholder_ids", "participant_ids", "participantIds"),
    "transcript": ("transcript",),
    "raw_chat": ("raw_chat", "rawChat"),
    "topics_discussed": ("topics_discussed", "topicsDiscussed"),
    "key_insights": ("key_insights", "keyInsights"),
    "meeting_notes": ("meeting_notes", "meetingNotes"),
    "summary_text": ("meeting_summary", "summary_text", "summaryText"),
    "effectiveness_score": ("effectiveness_score", "effectivenessScore"),
}

# Epoch values above this are milliseconds (year 5138 in seconds)
_EPOCH_MS_THRESHOLD = 100_000_000_000


def lookup(payload: dict[str, Any], field: str) -> Any:
    """Return the first non-None value stored under any alias of field."""
    for key in FIELD_ALIASES[field]:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def non_empty_str(value: Any) -> str | None:
    """Return value stripped if it is a string with visible content."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a datetime, ISO-8601 string, or epoch number into an aware datetime.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if abs(value) >= _EPOCH_MS_THRESHOLD else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
