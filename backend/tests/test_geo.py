import math
import random

import pytest

from retail_radar.utils.geo import (
    calculate_distance,
    estimate_delivery_time,
    find_nearby,
    get_bounding_box,
)

BROOKLYN = (40.6892, -73.9857)
MIDTOWN = (40.7580, -73.9855)


class Point:
    def __init__(self, name, lat, lng):
        self.name = name
        self.lat = lat
        self.lng = lng


def test_distance_symmetry():
    rnd = random.Random(7)
    for _ in range(50):
        a = (rnd.uniform(-80, 80), rnd.uniform(-179, 179))
        b = (rnd.uniform(-80, 80), rnd.uniform(-179, 179))
        assert calculate_distance(*a, *b) == calculate_distance(*b, *a)


def test_distance_zero():
    assert calculate_distance(*BROOKLYN, *BROOKLYN) == 0.0


def test_brooklyn_to_midtown():
    d = calculate_distance(*BROOKLYN, *MIDTOWN)
    assert 4.4 <= d <= 5.0
    # rounded to one decimal place
    assert d == round(d, 1)


def test_bounding_box_contains_radius():
    box = get_bounding_box(40.0, -74.0, 69.0)
    assert box.min_lat == pytest.approx(40.0 - 69.05 / 69)
    assert box.max_lat == pytest.approx(40.0 + 69.05 / 69)
    assert box.max_lng - box.min_lng > 2.0


def test_bounding_box_at_pole_spans_all_longitudes():
    box = get_bounding_box(90.0, 10.0, 5)
    assert box.min_lng == -180.0
    assert box.max_lng == 180.0


def test_find_nearby_matches_brute_force():
    rnd = random.Random(42)
    points = [
        Point(str(i), BROOKLYN[0] + rnd.uniform(-0.5, 0.5), BROOKLYN[1] + rnd.uniform(-0.5, 0.5))
        for i in range(300)
    ]
    for radius in (0.5, 3, 10, 25):
        found = find_nearby(points, *BROOKLYN, radius)
        expected = {p.name for p in points if calculate_distance(*BROOKLYN, p.lat, p.lng) <= radius}
        assert {p.name for p, _ in found} == expected
        distances = [d for _, d in found]
        assert distances == sorted(distances)
        assert all(d <= radius for d in distances)


def test_point_rounding_onto_the_radius_is_found():
    # 10.04 true miles due north rounds to 10.0, just past 10/69 degrees
    edge = Point("edge", BROOKLYN[0] + math.degrees(10.04 / 3959), BROOKLYN[1])
    assert calculate_distance(*BROOKLYN, edge.lat, edge.lng) == 10.0
    found = find_nearby([edge], *BROOKLYN, 10)
    assert [(p.name, d) for p, d in found] == [("edge", 10.0)]


def test_radius_zero_keeps_exact_match():
    here = Point("here", *BROOKLYN)
    near = Point("near", BROOKLYN[0] + 0.01, BROOKLYN[1])
    found = find_nearby([near, here], *BROOKLYN, 0)
    assert [(p.name, d) for p, d in found] == [("here", 0.0)]


def test_ties_keep_input_order():
    east = Point("east", BROOKLYN[0], BROOKLYN[1] + 0.02)
    west = Point("west", BROOKLYN[0], BROOKLYN[1] - 0.02)
    found = find_nearby([west, east], *BROOKLYN, 5)
    assert [p.name for p, _ in found] == ["west", "east"]
    found = find_nearby([east, west], *BROOKLYN, 5)
    assert [p.name for p, _ in found] == ["east", "west"]


def test_nan_coordinates_are_dropped():
    bad = Point("bad", math.nan, math.nan)
    assert find_nearby([bad], *BROOKLYN, 10) == []


@pytest.mark.parametrize(
    "distance,pickup,delivery",
    [
        (0, "10-15 min", "15-25 min"),
        (2, "10-15 min", "15-25 min"),
        (2.1, "15-25 min", "25-35 min"),
        (5, "15-25 min", "25-35 min"),
        (10, "20-30 min", "35-50 min"),
        (20, "30-45 min", "50-75 min"),
        (20.1, "45-60 min", "75-90 min"),
        (500, "45-60 min", "75-90 min"),
    ],
)
def test_delivery_bands(distance, pickup, delivery):
    assert estimate_delivery_time(distance) == {"pickup": pickup, "delivery": delivery}


def test_delivery_estimate_is_a_copy():
    estimate_delivery_time(1)["pickup"] = "changed"
    assert estimate_delivery_time(1)["pickup"] == "10-15 min"
