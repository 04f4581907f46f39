"""Redis-backed local meeting journal.

Writers stash in-progress or backup meetings here while the remote store is
slow, unreachable, or mid-write. Each entry is a JSON document under a key
that follows the journal naming convention (after the configured namespace):

    temp-meeting-{user_id}-{meeting_id}
    backup_meeting_{user_id}_{meeting_id}
    stored_meeting_...
    ...-{user_id}...meeting... / ...-{user_id}...transcript...

The prefixed forms are not always user-scoped (older clients omitted the
user id), so a scan may return other users' entries. Ownership is enforced
by the validator, not here.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from src.meeting_history.records.schemas import RawRecord, RecordSource
from src.meeting_history.sources.adapter import LocalMeetingJournal

logger = structlog.get_logger(__name__)

JOURNAL_KEY_PREFIXES: tuple[str, ...] = (
    "temp-meeting-",
    "stored_meeting_",
    "backup_meeting_",
)

_GLOB_SPECIAL = "\\*?[]"


def _escape_glob(value: str) -> str:
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in value)


def is_journal_key(name: str, user_id: str) -> bool:
    """Whether a key name (namespace stripped) belongs in user_id's scan."""
    if name.startswith(JOURNAL_KEY_PREFIXES):
        return True
    return f"-{user_id}" in name and ("meeting" in name or "transcript" in name)


def decode_entry(raw: str | bytes) -> dict[str, Any] | None:
    """Decode a journal value into a mapping, or None if it is not one."""
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


class RedisMeetingJournal(LocalMeetingJournal):
    """LocalMeetingJournal over a Redis keyspace.

    Args:
        redis: Async Redis client (decode_responses=True).
        namespace: Prefix prepended to every journal key.
        entry_ttl_seconds: Expiry applied by stash().
        scan_count: COUNT hint for SCAN iterations.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        namespace: str = "journal:",
        entry_ttl_seconds: int = 7 * 24 * 60 * 60,
        scan_count: int = 200,
    ) -> None:
        self._redis = redis
        self._namespace = namespace
        self._entry_ttl = entry_ttl_seconds
        self._scan_count = scan_count

    def _patterns(self, user_id: str) -> list[str]:
        ns = _escape_glob(self._namespace)
        patterns = [f"{ns}{prefix}*" for prefix in JOURNAL_KEY_PREFIXES]
        patterns.append(f"{ns}*-{_escape_glob(user_id)}*")
        return patterns

    async def _matching_keys(self, user_id: str) -> list[str]:
        names: set[str] = set()
        for pattern in self._patterns(user_id):
            async for key in self._redis.scan_iter(match=pattern, count=self._scan_count):
                if not key.startswith(self._namespace):
                    continue
                name = key[len(self._namespace):]
                if is_journal_key(name, user_id):
                    names.add(key)
        return sorted(names)

    async def scan_meetings(self, user_id: str) -> list[RawRecord]:
        """Read every journal entry in user_id's key space.

        Keys are processed in sorted order so repeated scans over unchanged
        data produce the same sequence. Corrupt entries are returned with
        payload=None; entries that expire between SCAN and MGET are skipped.
        """
        try:
            keys = await self._matching_keys(user_id)
            if not keys:
                return []
            values = await self._redis.mget(keys)
        except (RedisError, OSError) as exc:
            logger.warning(
                "redis_journal.scan_failed",
                user_id=user_id,
                error=str(exc),
            )
            return []

        records: list[RawRecord] = []
        for key, raw in zip(keys, values):
            if raw is None:
                continue
            payload = decode_entry(raw)
            if payload is None:
                logger.warning("redis_journal.entry_unparseable", key=key)
            records.append(
                RawRecord(source=RecordSource.JOURNAL, payload=payload, key=key)
            )

        logger.debug("redis_journal.scanned", user_id=user_id, count=len(records))
        return records

    async def stash(
        self, user_id: str, payload: dict[str, Any], kind: str = "temp"
    ) -> str:
        """Write a meeting payload into the journal with the entry TTL.

        Args:
            user_id: Owner of the meeting.
            payload: Raw meeting document; must contain an "id".
            kind: "temp" for in-progress meetings, "backup" for copies of
                meetings whose remote write has not been confirmed.

        Returns:
            The full Redis key written.

        Raises:
            ValueError: If payload has no id or kind is unknown.
        """
        meeting_id = payload.get("id")
        if not meeting_id:
            raise ValueError("Journal payload must contain an 'id'")
        if kind == "temp":
            name = f"temp-meeting-{user_id}-{meeting_id}"
        elif kind == "backup":
            name = f"backup_meeting_{user_id}_{meeting_id}"
        else:
            raise ValueError(f"Unknown journal entry kind: {kind!r}")

        key = f"{self._namespace}{name}"
        await self._redis.set(
            key,
            json.dumps(payload, separators=(",", ":"), default=str),
            ex=self._entry_ttl,
        )
        logger.info("redis_journal.stashed", key=key, user_id=user_id)
        return key

    async def discard(self, key: str) -> bool:
        """Remove one journal entry by its full key. Returns True if it existed."""
        removed = await self._redis.delete(key)
        return bool(removed)
