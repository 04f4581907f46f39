"""Remote store table model -- persisted meeting records.

UserMeetingModel mirrors the hosted backend's user_meetings table. Column
names are kept as the backend defines them; the validator and normalizer
translate them into MeetingRecord fields. List-valued columns are JSON.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from src.meeting_history.core.database import Base


class UserMeetingModel(Base):
    """A completed or in-progress training meeting persisted by the backend."""

    __tablename__ = "user_meetings"
    __table_args__ = (
        Index("ix_user_meetings_user_created", "user_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    project_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    stakeholder_ids: Mapped[list | None] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    stakeholder_names: Mapped[list | None] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    stakeholder_roles: Mapped[list | None] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    transcript: Mapped[list | None] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    raw_chat: Mapped[list | None] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    topics_discussed: Mapped[list | None] = mapped_column(JSON, nullable=True)
    key_insights: Mapped[list | None] = mapped_column(JSON, nullable=True)
    meeting_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    meeting_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str | None] = mapped_column(
        String(50), default="in_progress", server_default=text("'in_progress'")
    )
    meeting_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_messages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_messages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ai_messages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    effectiveness_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def to_payload(self) -> dict[str, Any]:
        """Column name -> value mapping, the raw shape the validator expects."""
        return {
            column.key: getattr(self, column.key)
            for column in self.__table__.columns
        }
