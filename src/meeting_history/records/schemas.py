"""Pydantic v2 schemas for the meeting history domain.

Defines the canonical MeetingRecord surfaced to callers, the RawRecord
envelope used for candidates before validation, and the MeetingStats
aggregate. The reconciler, cache, stats aggregator, and API all import
from this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_PROJECT_LABEL = "Unknown Project"


# ── Enums ────────────────────────────────────────────────────────────────────


class RecordSource(str, Enum):
    """Where a raw candidate came from. Diagnostics only."""

    REMOTE = "remote"
    JOURNAL = "journal"


class SessionKind(str, Enum):
    """Meeting mode tag.

    INDIVIDUAL and GROUP are legacy tags written by older clients; the
    stats aggregator folds them into VOICE_TRANSCRIPT.
    """

    VOICE_ONLY = "voice-only"
    VOICE_TRANSCRIPT = "voice-transcript"
    INDIVIDUAL = "individual"
    GROUP = "group"
    UNKNOWN = "unknown"


class MeetingStatus(str, Enum):
    """Lifecycle status of a training meeting."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ── Raw Candidates ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RawRecord:
    """A candidate meeting record exactly as a source reported it.

    payload is None when the source held something that could not be
    decoded into a mapping (e.g. a corrupt journal blob).
    """

    source: RecordSource
    payload: dict[str, Any] | None
    key: str | None = None


# ── Meeting Models ───────────────────────────────────────────────────────────


class MessageCounts(BaseModel):
    """Exchange counts for a meeting."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    user: int = Field(default=0, ge=0, description="Exchanges authored by the trainee")
    counterpart: int = Field(
        default=0, ge=0, description="Exchanges authored by the simulated stakeholders"
    )


class MeetingRecord(BaseModel):
    """Canonical, fully defaulted meeting record."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    project_id: str | None = None
    project_label: str = UNKNOWN_PROJECT_LABEL
    created_at: datetime
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    session_kind: SessionKind = SessionKind.UNKNOWN
    status: MeetingStatus = MeetingStatus.IN_PROGRESS
    duration_seconds: int = Field(default=0, ge=0)
    message_counts: MessageCounts = Field(default_factory=MessageCounts)
    participant_names: list[str] = Field(default_factory=list)
    participant_roles: list[str] = Field(default_factory=list)
    participant_ids: list[str] = Field(default_factory=list)
    transcript: list[dict[str, Any]] = Field(default_factory=list)
    raw_chat: list[dict[str, Any]] = Field(default_factory=list)
    topics_discussed: list[str] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    meeting_notes: str = ""
    summary_text: str = ""
    effectiveness_score: float | None = None


# ── Statistics ───────────────────────────────────────────────────────────────


class MeetingStats(BaseModel):
    """Aggregate counts and ratios over a user's reconciled meetings."""

    total_meetings: int = 0
    voice_only_meetings: int = 0
    voice_transcript_meetings: int = Field(
        default=0, description="Includes legacy individual/group meetings"
    )
    unknown_kind_meetings: int = 0
    by_session_kind: dict[str, int] = Field(default_factory=dict)
    unique_projects: int = 0
    deliverables_created: int = Field(
        default=0, description="Meetings with a non-blank summary"
    )

    # Kept for older dashboard widgets
    voice_meetings: int = 0
    transcript_meetings: int = 0

    voice_only_ratio: float = 0.0
    voice_transcript_ratio: float = 0.0
    deliverable_ratio: float = 0.0
