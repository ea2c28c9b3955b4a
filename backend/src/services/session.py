from __future__ import annotations

from typing import Callable, List, Optional

from loguru import logger

from config import Configuration
from models import Coordinate, RankedSuggestion, Restaurant, SearchFilters, TravelMode
from services.catalog import RestaurantCatalog
from services.directions import RouteOutcome, plan_route
from services.floating_controls import FloatingControlsVisibility, Scheduler
from services.geolocation import GeolocationPlatform, GeolocationTracker
from services.google_maps import GoogleMapsClient
from services.location_store import LocationStore
from services.manual_location import ManualLocationOverride
from services.persistence import InMemoryRestaurantRepository, RestaurantRepository
from services.seed import seed_restaurants
from services.suggestions import ResultsCallback, SuggestionSearch


def build_google_client(cfg: Configuration) -> Optional[GoogleMapsClient]:
    """Google client when a key is configured, otherwise None (seed data only)."""
    try:
        cfg.require_google()
    except ValueError as exc:
        logger.warning("places provider disabled: {}", exc)
        return None
    return GoogleMapsClient(cfg)


class DiscoverySession:
    """One user's store, tracker, override, catalog and controls, wired together."""

    def __init__(
        self,
        cfg: Configuration,
        platform: Optional[GeolocationPlatform] = None,
        *,
        client: Optional[GoogleMapsClient] = None,
        repository: Optional[RestaurantRepository] = None,
        scheduler: Optional[Scheduler] = None,
        on_suggestions: Optional[ResultsCallback] = None,
    ) -> None:
        self.cfg = cfg
        self.client = client
        self.store = LocationStore()
        self.tracker = GeolocationTracker(
            platform, self.store, movement_threshold_deg=cfg.movement_threshold_deg
        )
        self.override = ManualLocationOverride(
            self.store, self.tracker, client, geocode_context=cfg.geocode_context
        )
        self.catalog = RestaurantCatalog(
            client,
            repository or InMemoryRestaurantRepository(),
            default_origin=Coordinate(cfg.default_lat, cfg.default_lon),
            provider_radius_m=cfg.provider_search_radius_m,
            suggestion_limit=cfg.suggestion_limit,
        )
        self.suggestions = SuggestionSearch(
            self.catalog,
            client,
            delay_s=cfg.suggestion_debounce_ms / 1000.0,
            limit=cfg.suggestion_limit,
            query_context=cfg.geocode_context,
            on_results=on_suggestions,
        )
        self.controls = FloatingControlsVisibility(scheduler)
        self._unsubscribers: List[Callable[[], None]] = []
        self._closed = False

    @property
    def origin(self) -> Optional[Coordinate]:
        return self.store.state.current

    async def start(self) -> None:
        """Populate the catalog, acquire a first fix and begin watching."""
        self.catalog.load_seed(seed_restaurants())
        await self.catalog.load_persisted()
        state = await self.tracker.request_once()
        self.tracker.start_watching()
        self.controls.start()
        if self.catalog.provider is not None:
            await self.catalog.refresh(origin=state.current)
        logger.info(
            "session started source={} restaurants={}",
            state.source.value,
            len(self.catalog.restaurants),
        )

    def nearby(self, filters: Optional[SearchFilters] = None) -> List[Restaurant]:
        return self.catalog.apply_filters(filters or SearchFilters(), self.origin)

    def search_as_you_type(self, text: str) -> None:
        self.controls.user_activity()
        self.suggestions.schedule(text, self.origin)

    def pick_suggestion(self, suggestion: RankedSuggestion) -> Restaurant:
        """Bring a picked provider-only suggestion into the catalog so filters and routes see it."""
        if not suggestion.imported:
            self.catalog.include(suggestion.restaurant)
        return self.catalog.get_by_id(suggestion.restaurant.id) or suggestion.restaurant

    async def route_to(self, restaurant: Restaurant, mode: TravelMode = TravelMode.WALKING) -> RouteOutcome:
        origin = self.origin or self.default_origin
        return await plan_route(self.client, origin, restaurant.coordinates, mode)

    @property
    def default_origin(self) -> Coordinate:
        return Coordinate(self.cfg.default_lat, self.cfg.default_lon)

    def on_location_change(self, listener) -> None:
        self._unsubscribers.append(self.store.subscribe(listener))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.tracker.stop_watching()
        self.suggestions.cancel()
        self.controls.dispose()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        logger.debug("session closed")
