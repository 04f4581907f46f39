"""Integration tests for the meeting history REST endpoints.

Sets app.state.meeting_history to a service over in-memory sources and
drives the app with httpx AsyncClient (ASGITransport, lifespan not run).
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.meeting_history.cache import MeetingCache
from src.meeting_history.main import create_app
from src.meeting_history.reconciler import Reconciler
from src.meeting_history.service import MeetingHistoryService
from tests.meeting_fakes import FakeClock, InMemoryJournal, InMemoryRemoteStore, meeting


@pytest.fixture
def sources():
    remote = InMemoryRemoteStore(
        [
            meeting("m1", created_at="2024-01-02T10:00:00Z", meeting_type="voice-only"),
            meeting("m2", created_at="2024-01-01T10:00:00Z", meeting_summary="Scope"),
            meeting("x1", owner="u2"),
        ]
    )
    journal = InMemoryJournal(
        [meeting("j1", created_at="2024-01-03T10:00:00Z", meeting_type="group")]
    )
    return remote, journal


@pytest.fixture
def app(sources):
    remote, journal = sources
    cache = MeetingCache(Reconciler(remote, journal), clock=FakeClock())
    application = create_app()
    application.state.meeting_history = MeetingHistoryService(cache)
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Reads ────────────────────────────────────────────────────────────────────


class TestMeetingReads:
    @pytest.mark.asyncio
    async def test_list_meetings(self, client):
        resp = await client.get("/v1/users/u1/meetings")

        assert resp.status_code == 200
        body = resp.json()
        assert [m["id"] for m in body] == ["j1", "m1", "m2"]
        assert body[0]["session_kind"] == "group"
        assert body[1]["project_label"] == "Acme"
        assert body[1]["message_counts"] == {"total": 0, "user": 0, "counterpart": 0}

    @pytest.mark.asyncio
    async def test_unknown_user_gets_empty_list(self, client):
        resp = await client.get("/v1/users/nobody/meetings")
        assert resp.status_code == 200
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_recent_meetings_limit(self, client):
        resp = await client.get("/v1/users/u1/meetings/recent", params={"limit": 2})
        assert resp.status_code == 200
        assert [m["id"] for m in resp.json()] == ["j1", "m1"]

    @pytest.mark.asyncio
    async def test_recent_meetings_rejects_negative_limit(self, client):
        resp = await client.get("/v1/users/u1/meetings/recent", params={"limit": -1})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_stats(self, client):
        resp = await client.get("/v1/users/u1/meetings/stats")

        assert resp.status_code == 200
        stats = resp.json()
        assert stats["total_meetings"] == 3
        assert stats["voice_only_meetings"] == 1
        assert stats["voice_transcript_meetings"] == 1
        assert stats["deliverables_created"] == 1
        assert stats["unique_projects"] == 1


# ── Cache Control ────────────────────────────────────────────────────────────


class TestCacheControl:
    @pytest.mark.asyncio
    async def test_refresh_picks_up_new_rows(self, client, sources):
        remote, _ = sources
        await client.get("/v1/users/u1/meetings")
        remote.rows.append(meeting("m9", created_at="2024-05-01T00:00:00Z"))

        resp = await client.post("/v1/users/u1/meetings/refresh")

        assert resp.status_code == 200
        assert resp.json()[0]["id"] == "m9"

    @pytest.mark.asyncio
    async def test_clear_cache(self, client, sources):
        remote, _ = sources
        await client.get("/v1/users/u1/meetings")

        resp = await client.delete("/v1/meetings/cache", params={"user_id": "u1"})
        assert resp.status_code == 204

        await client.get("/v1/users/u1/meetings")
        assert remote.calls == 2

    @pytest.mark.asyncio
    async def test_clear_all_caches(self, client):
        resp = await client.delete("/v1/meetings/cache")
        assert resp.status_code == 204


# ── Service Availability ─────────────────────────────────────────────────────


class TestServiceUnavailable:
    @pytest.mark.asyncio
    async def test_503_when_service_not_initialized(self, app, client):
        app.state.meeting_history = None

        resp = await client.get("/v1/users/u1/meetings")

        assert resp.status_code == 503
        assert resp.json()["detail"] == "Meeting history service not initialized"


class TestInfrastructureRoutes:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        resp = await client.get("/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client):
        await client.get("/v1/users/u1/meetings")
        resp = await client.get("/metrics")
        assert resp.status_code == 200
        assert "meeting_cache_requests_total" in resp.text
