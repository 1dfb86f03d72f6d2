from datetime import date

import pytest

from soulmate.utils.geo import bounding_box, calculate_age, haversine_miles


def test_haversine_known_distance():
    # New York -> Los Angeles
    assert haversine_miles(40.7128, -74.0060, 34.0522, -118.2437) == pytest.approx(2445, abs=5)


def test_haversine_zero_and_symmetric():
    assert haversine_miles(51.5, -0.12, 51.5, -0.12) == 0.0
    assert haversine_miles(10, 20, 30, 40) == pytest.approx(haversine_miles(30, 40, 10, 20))


def test_haversine_across_antimeridian():
    assert haversine_miles(0, 179.9, 0, -179.9) == pytest.approx(13.8, abs=0.1)


def test_bounding_box_contains_radius():
    min_lat, max_lat, min_lng, max_lng = bounding_box(40.7128, -74.0060, 50)

    assert min_lat < 40.7128 < max_lat
    assert min_lng < -74.0060 < max_lng
    # Points at exactly the radius due north/east are inside the box
    assert haversine_miles(40.7128, -74.0060, max_lat, -74.0060) >= 50 - 0.5
    assert haversine_miles(40.7128, -74.0060, 40.7128, max_lng) >= 50 - 0.5


def test_bounding_box_wraps_antimeridian():
    min_lat, max_lat, min_lng, max_lng = bounding_box(0.0, 179.9, 50)

    assert min_lng > max_lng
    assert min_lng < 179.9
    assert max_lng > -180


def test_bounding_box_near_pole_spans_all_longitudes():
    _, max_lat, min_lng, max_lng = bounding_box(89.9, 10.0, 50)

    assert max_lat == 90.0
    assert (min_lng, max_lng) == (-180.0, 180.0)


def test_calculate_age():
    today = date(2026, 6, 15)
    assert calculate_age(date(2000, 6, 15), today) == 26
    assert calculate_age(date(2000, 6, 16), today) == 25
    assert calculate_age(None, today) is None
