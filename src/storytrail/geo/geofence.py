"""Great-circle distance and the "player is at the waypoint" predicate.

Pure functions only. A missing coordinate on either side (waypoint without a
configured location, device without a fix) always means *not present*.
"""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_M = 6_371_000.0
PRESENCE_RADIUS_M = 50.0

Coordinate = tuple[float, float]


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Distance in meters between two (latitude, longitude) pairs in decimal degrees."""
    lat1, lon1 = a
    lat2, lon2 = b
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    d_phi = radians(lat2 - lat1)
    d_lambda = radians(lon2 - lon1)

    h = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    # Clamp: rounding can push h a hair above 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * atan2(sqrt(h), sqrt(1 - h))


def distance_m(a: Coordinate | None, b: Coordinate | None) -> float | None:
    """Like haversine_m, but None when either coordinate is unknown."""
    if a is None or b is None:
        return None
    return haversine_m(a, b)


def is_present(
    player: Coordinate | None,
    waypoint: Coordinate | None,
    radius_m: float = PRESENCE_RADIUS_M,
) -> bool:
    """True iff both coordinates are known and no more than ``radius_m`` apart."""
    d = distance_m(player, waypoint)
    return d is not None and d <= radius_m


def format_distance(meters: float) -> str:
    """Human readable distance: ``"120 m"`` below a kilometre, ``"2.4 km"`` above."""
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"
