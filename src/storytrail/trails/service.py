"""Trail service — content reads, access checks and per-player waypoint state."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.db.models import Purchase, Trail, Waypoint
from storytrail.exceptions import (
    EntitlementError,
    TrailNotFoundError,
    TrailUnavailableError,
    WaypointNotFoundError,
)
from storytrail.geo.geofence import distance_m, format_distance
from storytrail.progress.store import ProgressStore
from storytrail.trails import sequencer
from storytrail.trails.sequencer import WaypointState

logger = logging.getLogger(__name__)


class TrailService:
    """Read side of the engine. Never writes."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.progress = ProgressStore(db)

    # --- Content ---

    async def list_trails(self) -> list[Trail]:
        """Published trails ordered by display rank, then name."""
        result = await self.db.execute(
            select(Trail)
            .where(Trail.is_published.is_(True))
            .order_by(Trail.display_order, Trail.name)
        )
        return list(result.scalars().all())

    async def get_published_trail(self, trail_id: str) -> Trail:
        trail = await self.db.get(Trail, trail_id)
        if trail is None:
            raise TrailNotFoundError
        if not trail.is_published:
            raise TrailUnavailableError
        return trail

    async def list_waypoints(self, trail_id: str) -> list[Waypoint]:
        result = await self.db.execute(
            select(Waypoint).where(Waypoint.city_id == trail_id).order_by(Waypoint.sequence_order)
        )
        return list(result.scalars().all())

    async def get_waypoint(self, trail_id: str, waypoint_id: str) -> Waypoint:
        waypoint = await self.db.get(Waypoint, waypoint_id)
        if waypoint is None or waypoint.city_id != trail_id:
            raise WaypointNotFoundError
        return waypoint

    # --- Access ---

    async def has_purchase(self, player_id: str, trail_id: str) -> bool:
        result = await self.db.execute(
            select(Purchase.id).where(Purchase.user_id == player_id, Purchase.city_id == trail_id)
        )
        return result.first() is not None

    async def ensure_access(self, player_id: str, trail_id: str, *, playtest_enabled: bool) -> Trail:
        """Published, and either free, purchased, or playtest is on. Raises otherwise."""
        trail = await self.get_published_trail(trail_id)
        if trail.price_cents > 0 and not playtest_enabled:
            if not await self.has_purchase(player_id, trail_id):
                raise EntitlementError
        return trail

    # --- Player state ---

    async def waypoint_states(self, player_id: str, trail_id: str) -> list[dict[str, Any]]:
        """Public view of every waypoint with the player's unlock state.

        Answer data and clue text are never included. Locked waypoints also
        withhold intro, riddle and options.
        """
        waypoints = await self.list_waypoints(trail_id)
        completed = await self.progress.completed_ids(player_id, trail_id)

        views = []
        for w in waypoints:
            state = sequencer.derive_state(w, waypoints, completed)
            unlocked = sequencer.is_unlocked(w, waypoints, completed)
            views.append(public_waypoint(w, state, unlocked=unlocked))
        return views

    async def progress_summary(self, player_id: str, trail_id: str) -> dict[str, Any]:
        waypoints = await self.list_waypoints(trail_id)
        completed = await self.progress.completed_ids(player_id, trail_id)
        nxt = sequencer.next_destination(waypoints, completed)
        return {
            "trail_id": trail_id,
            "completed_waypoint_ids": sorted(completed),
            "completed_count": len(completed),
            "total_count": len(waypoints),
            "finished": sequencer.is_trail_finished(waypoints, completed),
            "next_waypoint_id": nxt.id if nxt else None,
        }

    async def check_presence(
        self,
        player_id: str,
        trail_id: str,
        waypoint_id: str,
        position: tuple[float, float] | None,
        *,
        radius_m: float,
        override: bool = False,
        playtest_enabled: bool = False,
    ) -> dict[str, Any]:
        """Geofence check against a reported device position."""
        waypoint = await self.get_waypoint(trail_id, waypoint_id)
        waypoints = await self.list_waypoints(trail_id)
        completed = await self.progress.completed_ids(player_id, trail_id)

        d = distance_m(position, waypoint.coordinate)
        if override and not playtest_enabled:
            logger.info("Ignoring presence override for %s: playtest disabled", waypoint_id)
        overridden = override and playtest_enabled
        present = overridden or (d is not None and d <= radius_m)

        if position is None:
            fix_status = "no_fix"
        elif waypoint.coordinate is None:
            fix_status = "no_waypoint_location"
        else:
            fix_status = "fix"

        state = sequencer.derive_state(waypoint, waypoints, completed, present=present)
        return {
            "waypoint_id": waypoint.id,
            "distance_m": d,
            "distance_text": format_distance(d) if d is not None else None,
            "present": present,
            "overridden": overridden,
            "fix_status": fix_status,
            "state": state.value,
        }


def public_waypoint(w: Waypoint, state: WaypointState, *, unlocked: bool) -> dict[str, Any]:
    locked = state is WaypointState.LOCKED
    return {
        "id": w.id,
        "city_id": w.city_id,
        "name": w.name,
        "sequence_order": w.sequence_order,
        "latitude": w.latitude,
        "longitude": w.longitude,
        "answer_type": w.answer_type,
        "is_intro_location": w.is_intro_location,
        "is_reveal": w.is_reveal,
        "is_end_location": w.is_end_location,
        "intro_text": None if locked else w.intro_text,
        "riddle_text": None if locked else w.riddle_text,
        "answer_options": [] if locked else list(w.answer_options or []),
        "state": state.value,
        "unlocked": unlocked,
        "completed": state is WaypointState.COMPLETED,
    }
