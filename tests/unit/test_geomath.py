"""
Unit tests for great-circle distance.
"""

import math
import pytest

from processing.geomath import EARTH_RADIUS_KM, great_circle_distance_km, segment_midpoint


POINTS = [
    (0.0, 0.0),
    (50.0379, 8.5622),
    (-33.9461, 151.1772),
    (89.9, -179.9),
    (-90.0, 0.0),
]


@pytest.mark.parametrize("lat, lon", POINTS)
def test_distance_to_self_is_zero(lat, lon):
    assert great_circle_distance_km(lat, lon, lat, lon) == 0


def test_distance_is_symmetric():
    for a in POINTS:
        for b in POINTS:
            assert great_circle_distance_km(*a, *b) == pytest.approx(great_circle_distance_km(*b, *a))


@pytest.mark.parametrize("a, b", [
    ((0.0, 0.0), (0.0, 180.0)),
    ((90.0, 0.0), (-90.0, 0.0)),
    ((40.0, 30.0), (-40.0, -150.0)),
])
def test_antipodal_distance_is_half_circumference(a, b):
    assert great_circle_distance_km(*a, *b) == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-6)


def test_near_zero_separation_is_small_and_positive():
    d = great_circle_distance_km(50.0, 8.0, 50.0, 8.0 + 1e-9)
    assert 0 < d < 1e-3


def test_frankfurt_to_heathrow():
    # FRA -> LHR is roughly 650 km
    assert great_circle_distance_km(50.0379, 8.5622, 51.47, -0.4543) == pytest.approx(655, abs=10)


def test_segment_midpoint_is_coordinate_mean():
    assert segment_midpoint(52.0, 20.0, 50.0, 30.0) == (51.0, 25.0)
