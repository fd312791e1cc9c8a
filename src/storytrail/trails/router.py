"""Trail endpoints — listing, waypoint state, progress and presence checks."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.auth.dependencies import Player, get_current_player
from storytrail.config import get_settings
from storytrail.database import get_session
from storytrail.db.models import Trail
from storytrail.dependencies import get_playtest_enabled
from storytrail.trails.schemas import (
    PresenceRequest,
    PresenceResponse,
    ProgressResponse,
    TrailListResponse,
    TrailResponse,
    WaypointListResponse,
    WaypointResponse,
)
from storytrail.trails.service import TrailService

router = APIRouter(prefix="/api/v1/trails", tags=["Trails"])


def _trail_response(trail: Trail) -> TrailResponse:
    return TrailResponse(
        id=trail.id,
        name=trail.name,
        description=trail.description,
        tagline=trail.tagline,
        price_cents=trail.price_cents,
        is_free=trail.is_free,
        display_order=trail.display_order,
    )


@router.get("", response_model=TrailListResponse)
async def list_trails(db: AsyncSession = Depends(get_session)) -> TrailListResponse:
    """Published trails. Public."""
    trails = await TrailService(db).list_trails()
    return TrailListResponse(trails=[_trail_response(t) for t in trails])


@router.get("/{trail_id}", response_model=TrailResponse)
async def get_trail(trail_id: str, db: AsyncSession = Depends(get_session)) -> TrailResponse:
    trail = await TrailService(db).get_published_trail(trail_id)
    return _trail_response(trail)


@router.get("/{trail_id}/waypoints", response_model=WaypointListResponse)
async def list_waypoints(
    trail_id: str,
    player: Player = Depends(get_current_player),
    playtest_enabled: bool = Depends(get_playtest_enabled),
    db: AsyncSession = Depends(get_session),
) -> WaypointListResponse:
    """Waypoints with the caller's unlock state. Locked stops show no story content."""
    svc = TrailService(db)
    await svc.ensure_access(player.id, trail_id, playtest_enabled=playtest_enabled)
    views = await svc.waypoint_states(player.id, trail_id)
    return WaypointListResponse(trail_id=trail_id, waypoints=[WaypointResponse(**v) for v in views])


@router.get("/{trail_id}/progress", response_model=ProgressResponse)
async def get_progress(
    trail_id: str,
    player: Player = Depends(get_current_player),
    db: AsyncSession = Depends(get_session),
) -> ProgressResponse:
    svc = TrailService(db)
    await svc.get_published_trail(trail_id)
    return ProgressResponse(**await svc.progress_summary(player.id, trail_id))


@router.post("/{trail_id}/waypoints/{waypoint_id}/presence", response_model=PresenceResponse)
async def check_presence(
    trail_id: str,
    waypoint_id: str,
    body: PresenceRequest,
    player: Player = Depends(get_current_player),
    playtest_enabled: bool = Depends(get_playtest_enabled),
    db: AsyncSession = Depends(get_session),
) -> PresenceResponse:
    """Is the reported position inside the waypoint's geofence?"""
    svc = TrailService(db)
    await svc.ensure_access(player.id, trail_id, playtest_enabled=playtest_enabled)
    position = None
    if body.latitude is not None and body.longitude is not None:
        position = (body.latitude, body.longitude)
    result = await svc.check_presence(
        player.id,
        trail_id,
        waypoint_id,
        position,
        radius_m=get_settings().geofence_radius_m,
        override=body.override,
        playtest_enabled=playtest_enabled,
    )
    return PresenceResponse(**result)
