"""
Tests for distance and travel time formulas
"""

import pytest

from aptracker.core.geo import (
    approximate_transit_minutes,
    distance_to,
    has_coordinates,
    haversine_km,
    km_to_meters,
    round_half_up,
    routed_transit_minutes,
    walking_minutes,
)


class TestHaversine:
    """Test great-circle distance"""

    def test_same_point_is_zero(self):
        assert haversine_km(46.07, 11.12, 46.07, 11.12) == 0

    def test_short_distance_in_trento(self):
        distance = haversine_km(46.0700, 11.1200, 46.0679, 11.1211)
        assert distance == pytest.approx(0.248, abs=0.005)

    def test_symmetric(self):
        forward = haversine_km(46.0700, 11.1200, 45.4642, 9.1900)
        backward = haversine_km(45.4642, 9.1900, 46.0700, 11.1200)
        assert forward == pytest.approx(backward)

    def test_one_degree_of_latitude(self):
        # 2 * pi * 6371 / 360
        assert haversine_km(0, 0, 1, 0) == pytest.approx(111.195, abs=0.01)


class TestTravelTimes:
    """Test minute conversions"""

    def test_walking_example(self):
        distance = haversine_km(46.0700, 11.1200, 46.0679, 11.1211)
        assert walking_minutes(distance) == 3

    def test_transit_fallback_example(self):
        distance = haversine_km(46.0700, 11.1200, 46.0679, 11.1211)
        assert approximate_transit_minutes(distance) == 5

    def test_walking_zero_only_for_coincident_points(self):
        assert walking_minutes(0) == 0
        assert walking_minutes(1.0) == 12

    @pytest.mark.parametrize("distance", [0, 0.3, 2.5, 12.0, 80.0])
    def test_walking_formula(self, distance):
        assert walking_minutes(distance) == round_half_up(distance / 5 * 60)
        assert walking_minutes(distance) >= 0

    @pytest.mark.parametrize("distance", [0, 0.3, 2.5, 12.0])
    def test_transit_fallback_includes_buffer(self, distance):
        assert approximate_transit_minutes(distance) >= 5
        assert approximate_transit_minutes(distance) == round_half_up(distance / 30 * 60) + 5

    def test_routed_transit_includes_buffer(self):
        assert routed_transit_minutes(600) == 15
        assert routed_transit_minutes(0) == 5
        assert routed_transit_minutes(630) == 16  # 10.5 minutes rounds up

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.49) == 2

    def test_km_to_meters(self):
        assert km_to_meters(0.2484) == 248


class TestCoordinates:
    """Test coordinate helpers"""

    def test_has_coordinates(self, listing_factory):
        assert has_coordinates(listing_factory(1, latitude=46.0, longitude=11.0))
        assert not has_coordinates(listing_factory(2, latitude=46.0))
        assert not has_coordinates(listing_factory(3))

    def test_zero_coordinates_count_as_set(self, listing_factory):
        assert has_coordinates(listing_factory(1, latitude=0.0, longitude=0.0))

    def test_distance_to_without_coordinates(self, listing_factory):
        assert distance_to(listing_factory(1), 46.0, 11.0) is None

    def test_distance_to(self, listing_factory):
        listing = listing_factory(1, latitude=46.0700, longitude=11.1200)
        assert distance_to(listing, 46.0679, 11.1211) == pytest.approx(0.248, abs=0.005)
