from __future__ import annotations

import asyncio
import uuid
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from models import (
    LIMA_CENTER,
    Coordinate,
    ErrorDescriptor,
    RankedSuggestion,
    Restaurant,
    RestaurantDraft,
    RestaurantOrigin,
    SearchFilters,
)
from services.distance import annotate_distance_km, filter_within_radius, sort_by_distance
from services.errors import ProviderErrorKind, provider_error_descriptor
from services.persistence import RestaurantRepository
from services.place_mapping import restaurants_from_places
from services.providers import PlacesProvider, PlacesProviderError
from utils import fold_text

DEFAULT_PROVIDER_RADIUS_M = 100_000.0  # covers the whole metro area
DEFAULT_SUGGESTION_LIMIT = 8

PERSISTENCE_ERROR = ErrorDescriptor(
    kind="persistence",
    message="No se pudo guardar el restaurante. Intenta de nuevo.",
)
PROVIDER_MISSING_ERROR = ErrorDescriptor(
    kind=ProviderErrorKind.REQUEST_DENIED.value,
    message="El servicio de lugares no está configurado.",
    retryable=False,
)


def _coordinates_of(restaurant: Restaurant) -> Coordinate:
    return restaurant.coordinates


def matches_text(restaurant: Restaurant, folded_query: str) -> bool:
    """Case-insensitive substring match on name, district or cuisine type."""
    return (
        folded_query in fold_text(restaurant.name)
        or folded_query in fold_text(restaurant.district)
        or folded_query in fold_text(restaurant.cuisine_type)
    )


class RestaurantCatalog:
    """The session's restaurant list and the filtered views derived from it."""

    def __init__(
        self,
        provider: Optional[PlacesProvider],
        repository: RestaurantRepository,
        *,
        default_origin: Coordinate = LIMA_CENTER,
        provider_radius_m: float = DEFAULT_PROVIDER_RADIUS_M,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
    ) -> None:
        self._provider = provider
        self._repository = repository
        self._default_origin = default_origin
        self._provider_radius_m = provider_radius_m
        self._suggestion_limit = suggestion_limit
        self._restaurants: List[Restaurant] = []
        self._error: Optional[ErrorDescriptor] = None
        self._loading = False
        self._refresh_token = 0

    @property
    def restaurants(self) -> Tuple[Restaurant, ...]:
        return tuple(self._restaurants)

    @property
    def error(self) -> Optional[ErrorDescriptor]:
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def provider(self) -> Optional[PlacesProvider]:
        return self._provider

    # ── Population ────────────────────────────────────────────────

    def load_seed(self, restaurants: Iterable[Restaurant]) -> int:
        """Add local seed entries whose ids are not in the catalog yet."""
        known = {r.id for r in self._restaurants}
        added = 0
        for restaurant in restaurants:
            if restaurant.id in known:
                continue
            known.add(restaurant.id)
            self._restaurants.append(restaurant)
            added += 1
        return added

    def include(self, restaurant: Restaurant) -> bool:
        """Append a single entry (e.g. a picked provider suggestion) unless already present."""
        if self.get_by_id(restaurant.id) is not None:
            return False
        self._restaurants.append(restaurant)
        return True

    async def load_persisted(self) -> int:
        """Load user-added restaurants from the repository; stored versions replace in-memory ones."""
        try:
            records = await asyncio.to_thread(self._repository.list)
        except Exception as exc:
            logger.exception("failed to load persisted restaurants: {}", exc)
            self._error = PERSISTENCE_ERROR
            return 0

        loaded = 0
        for record in records:
            try:
                restaurant = Restaurant.from_dict(record)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("skipping malformed stored restaurant {!r}: {}", record.get("id"), exc)
                continue
            index = self._index_of(restaurant.id)
            if index is None:
                self._restaurants.append(restaurant)
            else:
                self._restaurants[index] = restaurant
            loaded += 1
        return loaded

    async def refresh(
        self, origin: Optional[Coordinate] = None, radius_meters: Optional[float] = None
    ) -> bool:
        """
        Replace the provider-sourced entries with a fresh nearby search.

        Returns True when the fetched list was applied. Overlapping calls are
        resolved by request token: only the most recent call may write. On
        failure the previous list is kept and ``error`` is set.
        """
        if self._provider is None:
            self._error = PROVIDER_MISSING_ERROR
            return False
        if radius_meters is not None and radius_meters <= 0:
            self._error = provider_error_descriptor("INVALID_REQUEST")
            return False

        self._refresh_token += 1
        token = self._refresh_token
        center = origin if origin is not None else self._default_origin
        radius = radius_meters if radius_meters is not None else self._provider_radius_m
        self._loading = True
        self._error = None

        try:
            places = await asyncio.to_thread(self._provider.nearby_search, center, radius)
        except PlacesProviderError as exc:
            if token == self._refresh_token:
                logger.warning("catalog refresh failed status={} detail={}", exc.status, exc.detail)
                self._error = provider_error_descriptor(exc.status)
                self._loading = False
            return False
        except Exception as exc:
            if token == self._refresh_token:
                logger.exception("catalog refresh failed: {}", exc)
                self._error = provider_error_descriptor(None)
                self._loading = False
            return False

        if token != self._refresh_token:
            logger.debug("discarding stale catalog refresh token={} latest={}", token, self._refresh_token)
            return False

        fresh: list[Restaurant] = []
        seen: set[str] = set()
        for restaurant in restaurants_from_places(places):
            if restaurant.id in seen:
                continue
            seen.add(restaurant.id)
            fresh.append(restaurant)

        user_added = [r for r in self._restaurants if r.origin == RestaurantOrigin.USER]
        user_ids = {r.id for r in user_added}
        self._restaurants = [r for r in fresh if r.id not in user_ids] + user_added
        self._loading = False
        logger.info(
            "catalog refreshed origin={:.4f},{:.4f} radius_m={:.0f} provider={} user={}",
            center.latitude,
            center.longitude,
            radius,
            len(fresh),
            len(user_added),
        )
        return True

    # ── Queries ───────────────────────────────────────────────────

    def apply_filters(self, filters: SearchFilters, origin: Optional[Coordinate]) -> List[Restaurant]:
        # Cheap predicates narrow the set before any distance work.
        candidates = list(self._restaurants)

        query = fold_text(filters.text).strip()
        if query:
            candidates = [r for r in candidates if matches_text(r, query)]

        if filters.group_type:
            candidates = [r for r in candidates if r.group_friendly.allows(filters.group_type)]

        if filters.price_range is not None:
            bounds = filters.price_range
            candidates = [r for r in candidates if bounds.contains(r.price_range)]

        if origin is not None and filters.radius_meters is not None:
            candidates = filter_within_radius(origin, filters.radius_meters, candidates, _coordinates_of)

        if origin is not None:
            candidates = sort_by_distance(origin, candidates, _coordinates_of)

        return candidates

    def suggest(
        self, query_text: str, origin: Optional[Coordinate], limit: Optional[int] = None
    ) -> List[RankedSuggestion]:
        limit = self._suggestion_limit if limit is None else limit
        query = fold_text(query_text).strip()
        if not query or limit <= 0:
            return []

        matches = [r for r in self._restaurants if matches_text(r, query)]
        if origin is not None:
            matches = sort_by_distance(origin, matches, _coordinates_of)
        return [
            RankedSuggestion(restaurant=r, distance_km=d)
            for r, d in annotate_distance_km(origin, matches[:limit], _coordinates_of)
        ]

    def get_by_id(self, restaurant_id: str) -> Optional[Restaurant]:
        index = self._index_of(restaurant_id)
        return self._restaurants[index] if index is not None else None

    # ── User-added entries ────────────────────────────────────────

    async def add(self, draft: RestaurantDraft) -> Restaurant:
        restaurant = Restaurant.from_draft(draft, id=self._new_id(), origin=RestaurantOrigin.USER)
        await self._persist(restaurant)
        self._restaurants.append(restaurant)
        logger.info("restaurant added id={} name={}", restaurant.id, restaurant.name)
        return restaurant

    async def update(self, restaurant: Restaurant) -> Restaurant:
        """Replace a user-added restaurant wholesale, keeping its id and date_added."""
        index = self._index_of(restaurant.id)
        if index is None:
            raise KeyError(restaurant.id)
        existing = self._restaurants[index]
        if existing.origin != RestaurantOrigin.USER:
            raise ValueError(f"restaurant {restaurant.id} comes from the provider and cannot be edited")

        replacement = restaurant.with_changes(origin=RestaurantOrigin.USER, date_added=existing.date_added)
        await self._persist(replacement)
        self._restaurants[index] = replacement
        return replacement

    async def _persist(self, restaurant: Restaurant) -> None:
        try:
            await asyncio.to_thread(self._repository.upsert, restaurant.id, restaurant.to_dict())
        except Exception as exc:
            logger.exception("failed to persist restaurant {}: {}", restaurant.id, exc)
            self._error = PERSISTENCE_ERROR
            raise

    def _new_id(self) -> str:
        while True:
            candidate = f"user-{uuid.uuid4().hex}"
            if self._index_of(candidate) is None:
                return candidate

    def _index_of(self, restaurant_id: str) -> Optional[int]:
        for index, restaurant in enumerate(self._restaurants):
            if restaurant.id == restaurant_id:
                return index
        return None
