"""Pydantic models for leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    rank: int
    player_id: str
    name: str
    completion_time_ms: int
    completed_at: datetime | None = None
    formatted_time: str
    is_current_user: bool = False


class LeaderboardResponse(BaseModel):
    trail_id: str
    entries: list[LeaderboardEntry]
    total: int
