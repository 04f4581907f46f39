"""Source adapter abstract base classes -- the contract the reconciler consumes.

Two sources with different guarantees:
- RemoteMeetingStore is authoritative and may fail outright (network,
  query errors); failures surface as AdapterUnavailable.
- LocalMeetingJournal is best-effort and never fails; individual entries
  may be corrupt and are reported as RawRecord(payload=None).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.meeting_history.records.schemas import RawRecord, RecordSource


class AdapterUnavailable(Exception):
    """Raised when a meeting source cannot be read.

    Attributes:
        source: Which source failed.
        reason: Human-readable failure description.
    """

    def __init__(self, source: RecordSource, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.source.value} source unavailable: {self.reason}"


class RemoteMeetingStore(ABC):
    """Authoritative persistence for a user's meeting records."""

    @abstractmethod
    async def list_meetings(self, user_id: str) -> list[RawRecord]:
        """List every persisted meeting for user_id.

        Raises:
            AdapterUnavailable: If the backend cannot be queried.
        """
        ...


class LocalMeetingJournal(ABC):
    """Transient, user-scoped store of not-yet-persisted or backup meetings."""

    @abstractmethod
    async def scan_meetings(self, user_id: str) -> list[RawRecord]:
        """Enumerate journal entries that belong to user_id's key space.

        Never raises; an unreadable journal yields an empty list.
        """
        ...
