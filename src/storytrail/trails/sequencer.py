"""Unlock/lock rules for the linear trail.

Waypoint state is derived, never stored:

    LOCKED -> UNLOCKED -> (ARRIVED) -> COMPLETED

* Sequence positions 1 and 2 are always unlocked so a new player sees two
  stops straight away.
* Position n > 2 unlocks once the waypoint at exactly n - 1 in the same trail
  is completed. If that position does not exist (a gap) the waypoint stays
  locked.
* COMPLETED means a progress record exists for the player.
* ARRIVED is transient: unlocked and physically present (or overridden while
  play-testing). It is what gates the riddle itself.
"""

from __future__ import annotations

import enum
from collections.abc import Collection, Iterable, Sequence
from typing import Protocol

ALWAYS_UNLOCKED_POSITIONS = 2


class WaypointLike(Protocol):
    id: str
    sequence_order: int
    is_intro_location: bool
    is_end_location: bool


class WaypointState(str, enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    ARRIVED = "arrived"
    COMPLETED = "completed"


def find_by_sequence(waypoints: Iterable[WaypointLike], sequence_order: int) -> WaypointLike | None:
    for w in waypoints:
        if w.sequence_order == sequence_order:
            return w
    return None


def is_unlocked(
    waypoint: WaypointLike,
    waypoints: Iterable[WaypointLike],
    completed_ids: Collection[str],
) -> bool:
    """Unlock rule, independent of whether the waypoint itself is solved."""
    if waypoint.sequence_order <= ALWAYS_UNLOCKED_POSITIONS:
        return True
    previous = find_by_sequence(waypoints, waypoint.sequence_order - 1)
    return previous is not None and previous.id in completed_ids


def derive_state(
    waypoint: WaypointLike,
    waypoints: Iterable[WaypointLike],
    completed_ids: Collection[str],
    *,
    present: bool = False,
) -> WaypointState:
    if waypoint.id in completed_ids:
        return WaypointState.COMPLETED
    if not is_unlocked(waypoint, waypoints, completed_ids):
        return WaypointState.LOCKED
    return WaypointState.ARRIVED if present else WaypointState.UNLOCKED


def first_waypoint(waypoints: Iterable[WaypointLike]) -> WaypointLike | None:
    """Lowest sequence position; where the run timer starts."""
    return min(waypoints, key=lambda w: w.sequence_order, default=None)


def end_waypoint(waypoints: Iterable[WaypointLike]) -> WaypointLike | None:
    for w in waypoints:
        if w.is_end_location:
            return w
    return None


def is_trail_finished(waypoints: Sequence[WaypointLike], completed_ids: Collection[str]) -> bool:
    """End waypoint solved; without one, every non-intro waypoint solved."""
    end = end_waypoint(waypoints)
    if end is not None:
        return end.id in completed_ids
    puzzles = [w for w in waypoints if not w.is_intro_location]
    return bool(puzzles) and all(w.id in completed_ids for w in puzzles)


def next_destination(waypoints: Sequence[WaypointLike], completed_ids: Collection[str]) -> WaypointLike | None:
    """First waypoint by sequence that is unlocked and not yet solved."""
    for w in sorted(waypoints, key=lambda w: w.sequence_order):
        if w.id not in completed_ids and is_unlocked(w, waypoints, completed_ids):
            return w
    return None
