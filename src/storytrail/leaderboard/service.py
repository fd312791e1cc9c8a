"""Leaderboard service — ranked completion times per trail.

PostgreSQL holds the completions; the ranked list is cached in Redis as JSON
for a short TTL and dropped by the completion recorder on every new record.
A reader that built its list before that commit can still write it back after
the drop, so a new time may be missing from the board until the TTL expires.
The board is best-effort and accepts that window.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail import cache
from storytrail.config import get_settings
from storytrail.db.models import CompletionRecord, Profile
from storytrail.leaderboard.ranking import rank_completions

logger = logging.getLogger(__name__)


def leaderboard_cache_key(trail_id: str) -> str:
    """Build the Redis key holding a trail's ranked leaderboard."""
    return f"leaderboard:trail:{trail_id}"


async def load_completions(db: AsyncSession, trail_id: str) -> list[dict[str, Any]]:
    """All completions for a trail joined with the public player name."""
    result = await db.execute(
        select(
            CompletionRecord.user_id,
            CompletionRecord.completion_time_ms,
            CompletionRecord.completed_at,
            Profile.player_name,
        )
        .outerjoin(Profile, Profile.user_id == CompletionRecord.user_id)
        .where(CompletionRecord.city_id == trail_id)
    )
    return [
        {
            "user_id": row.user_id,
            "completion_time_ms": row.completion_time_ms,
            "completed_at": row.completed_at,
            "player_name": row.player_name,
        }
        for row in result
    ]


async def build_leaderboard(db: AsyncSession, trail_id: str) -> list[dict[str, Any]]:
    ranked = rank_completions(await load_completions(db, trail_id))
    return [
        {
            "rank": c["rank"],
            "player_id": c["user_id"],
            "name": c["name"],
            "completion_time_ms": c["completion_time_ms"],
            "completed_at": c["completed_at"].isoformat() if c["completed_at"] else None,
            "formatted_time": c["formatted_time"],
        }
        for c in ranked
    ]


async def get_leaderboard(
    db: AsyncSession,
    trail_id: str,
    current_player_id: str | None = None,
) -> list[dict[str, Any]]:
    """Ranked entries for a trail, read through the Redis cache.

    ``is_current_user`` is applied after the cache read so one cached list
    serves every caller.
    """
    key = leaderboard_cache_key(trail_id)
    entries = await cache.get_json(key)
    if entries is None:
        entries = await build_leaderboard(db, trail_id)
        await cache.set_json(key, entries, get_settings().leaderboard_cache_ttl_seconds)
        logger.debug("Built leaderboard for %s with %d entries", trail_id, len(entries))

    return [
        {**entry, "is_current_user": current_player_id is not None and entry["player_id"] == current_player_id}
        for entry in entries
    ]
