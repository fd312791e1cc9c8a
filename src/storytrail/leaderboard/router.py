"""Leaderboard endpoint — public, personalised when a token is sent."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.auth.dependencies import Player, get_optional_player
from storytrail.database import get_session
from storytrail.leaderboard.schemas import LeaderboardEntry, LeaderboardResponse
from storytrail.leaderboard.service import get_leaderboard
from storytrail.trails.service import TrailService

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])


@router.get("/{trail_id}", response_model=LeaderboardResponse)
async def trail_leaderboard(
    trail_id: str,
    player: Player | None = Depends(get_optional_player),
    db: AsyncSession = Depends(get_session),
) -> LeaderboardResponse:
    await TrailService(db).get_published_trail(trail_id)
    entries = await get_leaderboard(db, trail_id, current_player_id=player.id if player else None)
    return LeaderboardResponse(
        trail_id=trail_id,
        entries=[LeaderboardEntry(**e) for e in entries],
        total=len(entries),
    )
