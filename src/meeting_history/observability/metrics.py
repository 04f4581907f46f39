"""Prometheus metrics for meeting history reconciliation.

Provides:
- Counters for validation rejections, source failures, and cache outcomes
- Histogram for end-to-end reconciliation duration
- get_metrics_response(): Starlette response for the /metrics route
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest
from starlette.responses import Response

# ── Reconciliation Metrics ───────────────────────────────────────────────────

records_rejected_total = Counter(
    "meeting_records_rejected_total",
    "Raw meeting records dropped by validation",
    ["reason", "source"],
)

source_failures_total = Counter(
    "meeting_source_failures_total",
    "Meeting source fetches that failed or timed out",
    ["source"],
)

reconcile_duration_seconds = Histogram(
    "meeting_reconcile_duration_seconds",
    "Meeting reconciliation duration in seconds",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Cache Metrics ────────────────────────────────────────────────────────────

cache_requests_total = Counter(
    "meeting_cache_requests_total",
    "Meeting cache lookups by outcome",
    ["outcome"],  # hit | miss | coalesced
)


# ── Metrics Endpoint ─────────────────────────────────────────────────────────


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
