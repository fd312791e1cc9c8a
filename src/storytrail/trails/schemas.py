"""Pydantic models for trail endpoints.

Shapes follow the player app's ``City`` / ``Location`` interfaces, minus
every hidden answer field.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TrailResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    tagline: str | None = None
    price_cents: int
    is_free: bool
    display_order: int


class TrailListResponse(BaseModel):
    trails: list[TrailResponse]


class WaypointResponse(BaseModel):
    id: str
    city_id: str
    name: str
    sequence_order: int
    latitude: float | None = None
    longitude: float | None = None
    answer_type: str
    is_intro_location: bool
    is_reveal: bool
    is_end_location: bool
    intro_text: str | None = None
    riddle_text: str | None = None
    answer_options: list[str] = Field(default_factory=list)
    state: str
    unlocked: bool
    completed: bool


class WaypointListResponse(BaseModel):
    trail_id: str
    waypoints: list[WaypointResponse]


class ProgressResponse(BaseModel):
    trail_id: str
    completed_waypoint_ids: list[str]
    completed_count: int
    total_count: int
    finished: bool
    next_waypoint_id: str | None = None


class PresenceRequest(BaseModel):
    """Latest device fix. Omit both coordinates when the device has none yet."""

    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    override: bool = False


class PresenceResponse(BaseModel):
    waypoint_id: str
    distance_m: float | None = None
    distance_text: str | None = None
    present: bool
    overridden: bool
    fix_status: str
    state: str
