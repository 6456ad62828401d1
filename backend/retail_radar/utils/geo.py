"""
Geolocation helpers for distance calculation and proximity search.

All functions are pure. Coordinates are not validated: NaN or out-of-range
input yields NaN distances / failed box tests instead of an exception, so
callers must check coordinates before calling.
"""
import math
from typing import Callable, Iterable, List, NamedTuple, Tuple, TypeVar

EARTH_RADIUS_MILES = 3959.0
MILES_PER_DEGREE_LAT = 69.0
# distances are rounded to 0.1 mi, so a point up to 0.05 mi past the radius still qualifies
ROUNDING_SLACK_MILES = 0.05

T = TypeVar("T")


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance in miles, rounded to one decimal place."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_MILES * c, 1)


def get_bounding_box(lat: float, lng: float, radius_miles: float) -> BoundingBox:
    """
    Coarse lat/lng rectangle around a point. Over-approximates the circle;
    never use it as the distance test itself.
    """
    reach = radius_miles + ROUNDING_SLACK_MILES
    lat_delta = reach / MILES_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    if abs(cos_lat) < 1e-9:
        # meridians converge at the poles: any longitude qualifies
        return BoundingBox(lat - lat_delta, lat + lat_delta, -180.0, 180.0)
    lng_delta = reach / (MILES_PER_DEGREE_LAT * cos_lat)
    return BoundingBox(lat - lat_delta, lat + lat_delta, lng - lng_delta, lng + lng_delta)


def _lat_lng(candidate) -> Tuple[float, float]:
    return candidate.lat, candidate.lng


def find_nearby(
    candidates: Iterable[T],
    lat: float,
    lng: float,
    radius_miles: float,
    coords: Callable[[T], Tuple[float, float]] = _lat_lng,
) -> List[Tuple[T, float]]:
    """
    Return (candidate, distance) pairs within radius_miles, nearest first.

    The bounding box only skips the trig for obviously-far candidates; the
    exact cutoff (inclusive) is applied afterwards. Ties keep input order.
    """
    box = get_bounding_box(lat, lng, radius_miles)
    nearby = []
    for candidate in candidates:
        c_lat, c_lng = coords(candidate)
        if not box.contains(c_lat, c_lng):
            continue
        distance = calculate_distance(lat, lng, c_lat, c_lng)
        if distance <= radius_miles:
            nearby.append((candidate, distance))
    nearby.sort(key=lambda pair: pair[1])
    return nearby


DELIVERY_BANDS = [
    (2, {"pickup": "10-15 min", "delivery": "15-25 min"}),
    (5, {"pickup": "15-25 min", "delivery": "25-35 min"}),
    (10, {"pickup": "20-30 min", "delivery": "35-50 min"}),
    (20, {"pickup": "30-45 min", "delivery": "50-75 min"}),
]
FAR_ESTIMATE = {"pickup": "45-60 min", "delivery": "75-90 min"}


def estimate_delivery_time(distance_miles: float) -> dict:
    for limit, estimate in DELIVERY_BANDS:
        if distance_miles <= limit:
            return dict(estimate)
    return dict(FAR_ESTIMATE)
