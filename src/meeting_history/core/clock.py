"""Clock abstraction for TTL bookkeeping.

The cache only ever compares two readings of the same clock, so a monotonic
source is used in production and tests substitute a manually advanced one.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Return the current reading in seconds."""
        ...


class MonotonicClock:
    """Clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()
