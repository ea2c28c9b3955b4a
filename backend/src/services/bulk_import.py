"""Bulk import of provider restaurants into the persistent store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from loguru import logger

from models import Coordinate, Restaurant
from services.persistence import RestaurantRepository
from services.place_mapping import restaurants_from_places
from services.providers import PlacesProvider, PlacesProviderError

LIMA_SEARCH_CENTERS: List[Coordinate] = [
    Coordinate(-12.0464, -77.0428),  # Lima centre
    Coordinate(-12.1211, -77.0297),  # Miraflores
    Coordinate(-12.0977, -77.0365),  # San Isidro
    Coordinate(-12.1494, -77.0219),  # Barranco
    Coordinate(-12.0793, -76.9446),  # La Molina
    Coordinate(-12.1459, -76.9917),  # Santiago de Surco
]


@dataclass
class ImportReport:
    fetched: int = 0
    unique: int = 0
    saved: int = 0
    failed_centers: List[Coordinate] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "fetched": self.fetched,
            "unique": self.unique,
            "saved": self.saved,
            "failed_centers": [c.to_dict() for c in self.failed_centers],
        }


def is_duplicate(a: Restaurant, b: Restaurant, threshold_deg: float) -> bool:
    """Same name (case-insensitive) and within *threshold_deg* on both axes."""
    if a.name.strip().lower() != b.name.strip().lower():
        return False
    return (
        abs(a.coordinates.latitude - b.coordinates.latitude) < threshold_deg
        and abs(a.coordinates.longitude - b.coordinates.longitude) < threshold_deg
    )


def dedupe_restaurants(restaurants: Sequence[Restaurant], threshold_deg: float) -> List[Restaurant]:
    unique: list[Restaurant] = []
    seen_ids: set[str] = set()
    for restaurant in restaurants:
        if restaurant.id in seen_ids:
            continue
        if any(is_duplicate(existing, restaurant, threshold_deg) for existing in unique):
            continue
        seen_ids.add(restaurant.id)
        unique.append(restaurant)
    return unique


def import_from_provider(
    provider: PlacesProvider,
    repository: RestaurantRepository,
    *,
    centers: Sequence[Coordinate] = LIMA_SEARCH_CENTERS,
    radius_m: float = 50_000.0,
    dedupe_threshold_deg: float = 0.0005,
) -> ImportReport:
    """Fetch restaurants around every centre, drop duplicates, upsert the rest."""
    report = ImportReport()
    collected: list[Restaurant] = []

    for center in centers:
        try:
            places = provider.nearby_search(center, radius_m)
        except PlacesProviderError as exc:
            logger.warning(
                "import fetch failed at {:.4f},{:.4f} status={} detail={}",
                center.latitude,
                center.longitude,
                exc.status,
                exc.detail,
            )
            report.failed_centers.append(center)
            continue
        collected.extend(restaurants_from_places(places))

    report.fetched = len(collected)
    unique = dedupe_restaurants(collected, dedupe_threshold_deg)
    report.unique = len(unique)

    for restaurant in unique:
        try:
            repository.upsert(restaurant.id, restaurant.to_dict())
        except Exception as exc:
            logger.warning("failed to save restaurant {}: {}", restaurant.id, exc)
            continue
        report.saved += 1

    logger.info(
        "provider import fetched={} unique={} saved={} failed_centers={}",
        report.fetched,
        report.unique,
        report.saved,
        len(report.failed_centers),
    )
    return report
