"""In-memory test doubles for the meeting sources and the cache clock.

Both fakes snapshot their data when called and only then wait on the
optional gate, so a test can change the underlying data while a fetch is
blocked and still know which version that fetch will return.
"""

from __future__ import annotations

import asyncio
from typing import Any

from src.meeting_history.records.schemas import RawRecord, RecordSource
from src.meeting_history.sources.adapter import LocalMeetingJournal, RemoteMeetingStore
from src.meeting_history.sources.redis_journal import decode_entry


class _GatedSource:
    def __init__(self) -> None:
        self.calls = 0
        self.error: Exception | None = None
        self.delay = 0.0
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    async def _wait(self) -> None:
        self.calls += 1
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error


class InMemoryRemoteStore(_GatedSource, RemoteMeetingStore):
    """RemoteMeetingStore over a list of row dicts.

    Deliberately does not filter by user, so ownership filtering is
    exercised downstream.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        super().__init__()
        self.rows = list(rows or [])

    async def list_meetings(self, user_id: str) -> list[RawRecord]:
        snapshot = [dict(row) for row in self.rows]
        await self._wait()
        return [
            RawRecord(source=RecordSource.REMOTE, payload=row, key=row.get("id"))
            for row in snapshot
        ]


class InMemoryJournal(_GatedSource, LocalMeetingJournal):
    """LocalMeetingJournal over dicts or raw JSON strings (possibly corrupt)."""

    def __init__(self, entries: list[dict[str, Any] | str] | None = None) -> None:
        super().__init__()
        self.entries = list(entries or [])

    async def scan_meetings(self, user_id: str) -> list[RawRecord]:
        snapshot = list(self.entries)
        await self._wait()
        records = []
        for index, entry in enumerate(snapshot):
            payload = decode_entry(entry) if isinstance(entry, str) else dict(entry)
            records.append(
                RawRecord(
                    source=RecordSource.JOURNAL,
                    payload=payload,
                    key=f"temp-meeting-{index}",
                )
            )
        return records


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


def meeting(
    meeting_id: str,
    owner: str = "u1",
    created_at: str = "2024-01-01T00:00:00Z",
    **fields: Any,
) -> dict[str, Any]:
    """Minimal valid remote-store row for the given id and owner."""
    row: dict[str, Any] = {
        "id": meeting_id,
        "user_id": owner,
        "project_name": "Acme",
        "created_at": created_at,
    }
    row.update(fields)
    return row
