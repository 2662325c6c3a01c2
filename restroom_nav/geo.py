"""Great-circle helpers used by search normalization and route estimation."""
from __future__ import annotations

import math
from typing import Iterable, List, TypeVar

from .models import Coordinate, RouteEstimate, RouteSource

EARTH_RADIUS_M = 6371000.0

T = TypeVar("T")


def distance(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in meters between two WGS84 coordinates."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    hav = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # floating error can push hav slightly above 1 for antipodal points
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, hav)))


def within_radius(center: Coordinate, point: Coordinate, radius_meters: float) -> bool:
    return distance(center, point) <= radius_meters


def sort_by_distance(points: Iterable[T], center: Coordinate) -> List[T]:
    """Stable ascending sort of anything exposing ``.coordinate``."""
    return sorted(points, key=lambda item: distance(center, item.coordinate))


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"


def format_route(estimate: RouteEstimate) -> str:
    """Short human readable summary, e.g. ``1.2km, ~15 min (estimated)``."""
    minutes = math.ceil(estimate.duration_seconds / 60)
    label = "live" if estimate.source == RouteSource.LIVE else "estimated"
    return f"{format_distance(estimate.distance_meters)}, ~{minutes} min ({label})"
