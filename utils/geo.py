"""Distance helpers for the provider directory."""

from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_MILES = 3958.8
MILES_PER_DEGREE_LAT = 69.0


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


def bounding_box(lat: float, lng: float, radius_miles: float) -> BoundingBox:
    """Return a lat/lng box enclosing the circle of ``radius_miles``."""

    lat_delta = radius_miles / MILES_PER_DEGREE_LAT
    lng_delta = radius_miles / (MILES_PER_DEGREE_LAT * math.cos(math.radians(lat)))
    return BoundingBox(lat - lat_delta, lat + lat_delta, lng - lng_delta, lng + lng_delta)


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in miles."""

    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))
