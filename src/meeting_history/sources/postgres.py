"""PostgreSQL remote meeting store.

Reads the user_meetings table through the session_factory callable pattern
used by the other repositories. Rows are handed to the reconciler as raw
column mappings; validation and normalization happen there.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.meeting_history.records.models import UserMeetingModel
from src.meeting_history.records.schemas import RawRecord, RecordSource
from src.meeting_history.sources.adapter import AdapterUnavailable, RemoteMeetingStore

logger = structlog.get_logger(__name__)


class PostgresMeetingStore(RemoteMeetingStore):
    """RemoteMeetingStore backed by the user_meetings table.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def list_meetings(self, user_id: str) -> list[RawRecord]:
        """List a user's persisted meetings, newest first.

        Args:
            user_id: Owner of the meetings.

        Returns:
            One RawRecord per row.

        Raises:
            AdapterUnavailable: On any database or connection error.
        """
        try:
            async for session in self._session_factory():
                stmt = (
                    select(UserMeetingModel)
                    .where(UserMeetingModel.user_id == user_id)
                    .order_by(UserMeetingModel.created_at.desc())
                )
                result = await session.execute(stmt)
                models = result.scalars().all()
                records = [
                    RawRecord(
                        source=RecordSource.REMOTE,
                        payload=model.to_payload(),
                        key=model.id,
                    )
                    for model in models
                ]
                logger.debug(
                    "postgres_store.listed",
                    user_id=user_id,
                    count=len(records),
                )
                return records
        except (SQLAlchemyError, OSError) as exc:
            raise AdapterUnavailable(RecordSource.REMOTE, str(exc)) from exc
        return []
