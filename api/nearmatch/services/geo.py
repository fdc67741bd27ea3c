"""
Geo helpers for candidate search.

The bounding box is the cheap first phase (a range predicate the database can
answer from an index); haversine is the exact second phase.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import asin, cos, degrees, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    # None means every longitude qualifies (box touches a pole).
    lon_ranges: tuple[tuple[float, float], ...] | None

    def contains(self, lat: float, lon: float) -> bool:
        if lat < self.min_lat or lat > self.max_lat:
            return False
        if self.lon_ranges is None:
            return True
        return any(lo <= lon <= hi for lo, hi in self.lon_ranges)


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lat = radians(lat2 - lat1)
    delta_lon = radians(lon2 - lon1)

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    # Rounding can push a past 1 for antipodal points.
    c = 2 * asin(min(1.0, sqrt(a)))
    return EARTH_RADIUS_METERS * c


def bounding_box(lat: float, lon: float, radius_km: float) -> BoundingBox:
    """Rectangle around (lat, lon) that contains every point within radius_km.

    Uses the small-angle deltas
    dlat = (r / R) * (180 / pi) and dlon = (r / (R * cos(lat))) * (180 / pi).
    Off the equator the circle's true longitude extent is asin(sin(r/R) / cos(lat)),
    which is a hair wider than the small-angle value, so the wider of the two is used.
    """
    angular = radius_km / EARTH_RADIUS_KM
    dlat = degrees(angular)
    min_lat = max(-90.0, lat - dlat)
    max_lat = min(90.0, lat + dlat)

    cos_lat = cos(radians(lat))
    if max_lat >= 90.0 or min_lat <= -90.0 or sin(angular) >= cos_lat:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat, lon_ranges=None)

    dlon = max(degrees(angular / cos_lat), degrees(asin(sin(angular) / cos_lat)))
    if dlon >= 180.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat, lon_ranges=None)

    min_lon = lon - dlon
    max_lon = lon + dlon
    if min_lon < -180.0:
        ranges = ((min_lon + 360.0, 180.0), (-180.0, max_lon))
    elif max_lon > 180.0:
        ranges = ((min_lon, 180.0), (-180.0, max_lon - 360.0))
    else:
        ranges = ((min_lon, max_lon),)
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, lon_ranges=ranges)


def valid_coordinates(lat: float, lon: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
