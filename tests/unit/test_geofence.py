"""Unit tests for great-circle distance and the presence predicate."""

import pytest

from storytrail.geo.geofence import (
    PRESENCE_RADIUS_M,
    distance_m,
    format_distance,
    haversine_m,
    is_present,
)


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_m((51.5007, -0.1246), (51.5007, -0.1246)) == 0.0

    def test_one_degree_of_latitude(self):
        # 2 * pi * 6_371_000 / 360
        assert haversine_m((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111_194.9, abs=0.5)

    def test_symmetric(self):
        a, b = (50.8225, -0.1372), (50.8160, -0.1330)
        assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))

    def test_antipodal_points(self):
        """Half the circumference, no math domain error."""
        assert haversine_m((0.0, 0.0), (0.0, 180.0)) == pytest.approx(20_015_086.8, abs=1.0)


class TestPresence:
    def test_inside_radius(self):
        # 0.0004 degrees of latitude is about 44.5 m
        assert is_present((50.0004, 0.0), (50.0, 0.0)) is True

    def test_outside_radius(self):
        # 0.0005 degrees of latitude is about 55.6 m
        assert is_present((50.0005, 0.0), (50.0, 0.0)) is False

    def test_default_radius_is_fifty_meters(self):
        assert PRESENCE_RADIUS_M == 50.0

    def test_exactly_at_radius_is_present(self):
        player, waypoint = (50.00045, 0.0), (50.0, 0.0)
        d = haversine_m(player, waypoint)
        assert is_present(player, waypoint, radius_m=d) is True
        assert is_present(player, waypoint, radius_m=d - 0.01) is False

    def test_custom_radius(self):
        assert is_present((50.0005, 0.0), (50.0, 0.0), radius_m=60.0) is True

    def test_missing_player_fix_is_never_present(self):
        assert is_present(None, (50.0, 0.0)) is False

    def test_missing_waypoint_location_is_never_present(self):
        assert is_present((50.0, 0.0), None) is False

    def test_distance_unknown_without_both_points(self):
        assert distance_m(None, (50.0, 0.0)) is None
        assert distance_m((50.0, 0.0), None) is None
        assert distance_m(None, None) is None


class TestFormatDistance:
    def test_meters_below_a_kilometre(self):
        assert format_distance(42.4) == "42 m"
        assert format_distance(999.4) == "999 m"

    def test_kilometres_with_one_decimal(self):
        assert format_distance(1000) == "1.0 km"
        assert format_distance(2_449) == "2.4 km"
