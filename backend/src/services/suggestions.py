from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from loguru import logger

from models import Coordinate, ErrorDescriptor, RankedSuggestion
from services.catalog import RestaurantCatalog
from services.debounce import Debouncer
from services.distance import distance_meters
from services.errors import provider_error_descriptor
from services.place_mapping import restaurants_from_places
from services.providers import PlacesProvider, PlacesProviderError

ResultsCallback = Callable[[List[RankedSuggestion]], None]


class SuggestionSearch:
    """Debounced search-as-you-type over the catalog plus the places provider.

    Local catalog matches are always returned; provider matches that are not
    in the catalog yet are merged in with ``imported=False``. Only the most
    recent query may deliver results.
    """

    def __init__(
        self,
        catalog: RestaurantCatalog,
        provider: Optional[PlacesProvider] = None,
        *,
        delay_s: float = 0.3,
        limit: int = 8,
        query_context: str = ", Lima, Peru",
        on_results: Optional[ResultsCallback] = None,
    ) -> None:
        self._catalog = catalog
        self._provider = provider
        self._limit = limit
        self._context = query_context
        self._on_results = on_results
        self._debouncer = Debouncer(delay_s)
        self._token = 0
        self.results: List[RankedSuggestion] = []
        self.error: Optional[ErrorDescriptor] = None

    def schedule(self, text: str, origin: Optional[Coordinate]) -> None:
        """Queue a search for *text*; earlier queued or running searches are superseded."""
        self._token += 1
        token = self._token
        if not text.strip():
            self._debouncer.cancel()
            self._deliver(token, [])
            return
        self._debouncer.submit(self._run, text, origin, token)

    def cancel(self) -> None:
        self._token += 1
        self._debouncer.cancel()

    async def search_now(
        self, text: str, origin: Optional[Coordinate], token: Optional[int] = None
    ) -> List[RankedSuggestion]:
        """
        Local plus provider matches for *text*.

        A direct call takes a new request token, superseding earlier queries.
        ``error`` is only written while *token* is still the latest.
        """
        if token is None:
            self._token += 1
            token = self._token
        local = self._catalog.suggest(text, origin, self._limit)
        self._set_error(token, None)
        if self._provider is None or not text.strip():
            return local

        try:
            places = await asyncio.to_thread(
                self._provider.text_search, f"{text.strip()}{self._context}", origin
            )
        except PlacesProviderError as exc:
            logger.warning("suggestion search failed status={} detail={}", exc.status, exc.detail)
            self._set_error(token, provider_error_descriptor(exc.status))
            return local
        except Exception as exc:
            logger.exception("suggestion search failed: {}", exc)
            self._set_error(token, provider_error_descriptor(None))
            return local

        known = {r.id for r in self._catalog.restaurants}
        merged = list(local)
        for restaurant in restaurants_from_places(places):
            if restaurant.id in known:
                continue
            known.add(restaurant.id)
            distance_km = (
                distance_meters(origin, restaurant.coordinates) / 1000.0 if origin is not None else None
            )
            merged.append(RankedSuggestion(restaurant=restaurant, distance_km=distance_km, imported=False))

        if origin is not None:
            merged.sort(key=lambda s: s.distance_km if s.distance_km is not None else float("inf"))
        return merged[: self._limit]

    async def _run(self, text: str, origin: Optional[Coordinate], token: int) -> None:
        results = await self.search_now(text, origin, token)
        if token != self._token:
            logger.debug("dropping stale suggestions for {!r}", text)
            return
        self._deliver(token, results)

    def _deliver(self, token: int, results: List[RankedSuggestion]) -> None:
        if token != self._token:
            return
        self.results = results
        if self._on_results is not None:
            self._on_results(results)

    def _set_error(self, token: int, error: Optional[ErrorDescriptor]) -> None:
        if token == self._token:
            self.error = error
