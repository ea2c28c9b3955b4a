from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from models import Coordinate
from utils import haversine_km

T = TypeVar("T")


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between *a* and *b* in meters."""
    if a == b:
        return 0.0
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000.0


def filter_within_radius(
    origin: Coordinate,
    radius_meters: Optional[float],
    items: Iterable[T],
    coordinate_of: Callable[[T], Coordinate],
) -> List[T]:
    """Keep items within *radius_meters* of *origin*; a None radius keeps everything."""
    if radius_meters is None:
        return list(items)
    return [item for item in items if distance_meters(origin, coordinate_of(item)) <= radius_meters]


def sort_by_distance(
    origin: Coordinate,
    items: Iterable[T],
    coordinate_of: Callable[[T], Coordinate],
) -> List[T]:
    # sorted() is stable, so equal distances keep their input order
    return sorted(items, key=lambda item: distance_meters(origin, coordinate_of(item)))


def annotate_distance_km(
    origin: Optional[Coordinate],
    items: Iterable[T],
    coordinate_of: Callable[[T], Coordinate],
) -> List[Tuple[T, Optional[float]]]:
    if origin is None:
        return [(item, None) for item in items]
    return [(item, distance_meters(origin, coordinate_of(item)) / 1000.0) for item in items]
