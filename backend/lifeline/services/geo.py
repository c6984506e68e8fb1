"""Pure geometry helpers: haversine distance, staleness and search boxes.

All coordinate pairs are ``(longitude, latitude)``.
"""
import math
from datetime import datetime, timezone
from typing import NamedTuple, Optional, Sequence

EARTH_RADIUS_M = 6_371_000


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float
    # False when the box crosses the antimeridian or touches a pole; the
    # longitude range is then meaningless and callers should skip it.
    bounds_longitude: bool


def distance_to(a: Sequence[float], b: Sequence[float]) -> float:
    """Great-circle distance between two (lon, lat) pairs, in meters."""
    lon1, lat1 = a
    lon2, lat2 = b

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def is_stale(last_updated: datetime, minutes: float = 5, now: Optional[datetime] = None) -> bool:
    """True when ``last_updated`` is more than ``minutes`` old."""
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
    if last_updated.tzinfo is not None:
        last_updated = last_updated.astimezone(timezone.utc).replace(tzinfo=None)
    age_minutes = (now - last_updated).total_seconds() / 60
    return age_minutes > minutes


def bounding_box(longitude: float, latitude: float, radius_m: float) -> BoundingBox:
    """Smallest lat/lon rectangle containing the circle around a point."""
    angular = radius_m / EARTH_RADIUS_M
    min_lat = max(latitude - math.degrees(angular), -90.0)
    max_lat = min(latitude + math.degrees(angular), 90.0)

    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0, False)

    ratio = math.sin(angular) / math.cos(math.radians(latitude))
    if ratio >= 1.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0, False)
    lon_delta = math.degrees(math.asin(ratio))
    min_lon = longitude - lon_delta
    max_lon = longitude + lon_delta
    if min_lon < -180.0 or max_lon > 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0, False)

    return BoundingBox(min_lat, max_lat, min_lon, max_lon, True)


def format_distance(meters: float) -> str:
    """Distance for result cards, always in km: "0.1 km", "2.4 km"."""
    return f"{meters / 1000:.1f} km"
