"""Integration tests for GET /api/v1/leaderboard/{trail_id}."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from storytrail import cache
from storytrail.leaderboard.service import leaderboard_cache_key

pytestmark = pytest.mark.asyncio


class TestLeaderboard:
    async def test_empty_board(self, client: AsyncClient, seafront):
        response = await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")
        assert response.status_code == 200
        assert response.json() == {"trail_id": seafront.trail.id, "entries": [], "total": 0}

    async def test_fastest_first_with_names(self, client: AsyncClient, seafront, seed):
        await seed.profile("slow", "Watson")
        await seed.profile("fast", "Holmes")
        await seed.completion("slow", seafront.trail, 120_000)
        await seed.completion("fast", seafront.trail, 95_000)

        entries = (await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")).json()["entries"]
        assert [(e["rank"], e["name"], e["completion_time_ms"]) for e in entries] == [
            (1, "Holmes", 95_000),
            (2, "Watson", 120_000),
        ]
        assert entries[0]["formatted_time"] == "01:35"

    async def test_player_without_public_name_is_anonymous(self, client: AsyncClient, seafront, seed):
        await seed.completion("ghost", seafront.trail, 50_000)
        await seed.profile("blank", None)
        await seed.completion("blank", seafront.trail, 60_000)

        entries = (await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")).json()["entries"]
        assert [e["name"] for e in entries] == ["Anonymous", "Anonymous"]

    async def test_equal_times_ordered_by_completion(self, client: AsyncClient, seafront, seed):
        await seed.completion("late", seafront.trail, 70_000, completed_at=datetime(2026, 6, 2, tzinfo=timezone.utc))
        await seed.completion("early", seafront.trail, 70_000, completed_at=datetime(2026, 6, 1, tzinfo=timezone.utc))

        entries = (await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")).json()["entries"]
        assert [e["player_id"] for e in entries] == ["early", "late"]
        assert [e["rank"] for e in entries] == [1, 2]

    async def test_marks_current_player(self, client: AsyncClient, auth_headers, seafront, seed):
        await seed.completion("alice", seafront.trail, 80_000)
        await seed.completion("bob", seafront.trail, 90_000)

        entries = (
            await client.get(f"/api/v1/leaderboard/{seafront.trail.id}", headers=auth_headers("bob"))
        ).json()["entries"]
        assert [e["is_current_user"] for e in entries] == [False, True]

    async def test_invalid_token_reads_anonymously(self, client: AsyncClient, seafront, seed):
        await seed.completion("alice", seafront.trail, 80_000)
        response = await client.get(
            f"/api/v1/leaderboard/{seafront.trail.id}", headers={"Authorization": "Bearer junk"}
        )
        assert response.status_code == 200
        assert response.json()["entries"][0]["is_current_user"] is False

    async def test_boards_are_per_trail(self, client: AsyncClient, seafront, seed):
        other = await seed.trail("Other Town")
        await seed.completion("alice", other, 10_000)
        response = await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")
        assert response.json()["total"] == 0

    async def test_unknown_trail(self, client: AsyncClient, database):
        response = await client.get("/api/v1/leaderboard/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "City not found"}


class TestLeaderboardCache:
    async def test_served_from_cache(self, client: AsyncClient, seafront, monkeypatch):
        cached = [
            {
                "rank": 1,
                "player_id": "alice",
                "name": "Alice",
                "completion_time_ms": 42_000,
                "completed_at": "2026-06-01T10:00:00+00:00",
                "formatted_time": "00:42",
            }
        ]
        monkeypatch.setattr(cache, "get_json", AsyncMock(return_value=cached))
        set_json = AsyncMock()
        monkeypatch.setattr(cache, "set_json", set_json)

        entries = (await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")).json()["entries"]
        assert [e["name"] for e in entries] == ["Alice"]
        set_json.assert_not_awaited()

    async def test_miss_populates_cache(self, client: AsyncClient, seafront, seed, monkeypatch):
        await seed.completion("alice", seafront.trail, 80_000)
        set_json = AsyncMock()
        monkeypatch.setattr(cache, "set_json", set_json)

        await client.get(f"/api/v1/leaderboard/{seafront.trail.id}")
        key, entries, ttl = set_json.await_args.args
        assert key == leaderboard_cache_key(seafront.trail.id)
        assert entries[0]["player_id"] == "alice"
        assert "is_current_user" not in entries[0]
        assert ttl == 30

    async def test_new_completion_invalidates(self, client: AsyncClient, player_headers, seafront, seed, monkeypatch):
        invalidate = AsyncMock()
        monkeypatch.setattr(cache, "invalidate", invalidate)
        for waypoint in (seafront.intro, seafront.choice, seafront.finale):
            await seed.progress("player-1", waypoint)

        url = f"/api/v1/trails/{seafront.trail.id}/completion"
        await client.post(url, json={"completion_time_ms": 5_000}, headers=player_headers)
        await client.post(url, json={"completion_time_ms": 4_000}, headers=player_headers)
        invalidate.assert_awaited_once_with(leaderboard_cache_key(seafront.trail.id))
