from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger

from models import Coordinate, ErrorDescriptor, LocationSource, LocationState
from services.errors import ProviderErrorKind, provider_error_descriptor
from services.geolocation import GeolocationTracker
from services.location_store import LocationStore
from services.providers import GeocodingProvider, PlacesProviderError

EMPTY_ADDRESS_ERROR = ErrorDescriptor(
    kind=ProviderErrorKind.INVALID_REQUEST.value,
    message="Por favor ingresa una dirección válida.",
    retryable=False,
)


class ManualLocationOverride:
    """Lets the user pin a location that takes precedence over GPS until cleared."""

    def __init__(
        self,
        store: LocationStore,
        tracker: GeolocationTracker,
        geocoder: Optional[GeocodingProvider] = None,
        *,
        geocode_context: str = ", Lima, Peru",
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._geocoder = geocoder
        self._context = geocode_context
        self._pending: Optional[Coordinate] = None
        self._revert_to: Optional[Coordinate] = None
        # Bumped by every user action; a geocode reply is applied only if still current.
        self._token = 0

    @property
    def pending(self) -> Optional[Coordinate]:
        return self._pending

    def set_coordinate(self, coord: Coordinate, source: LocationSource = LocationSource.MANUAL) -> LocationState:
        self._token += 1
        self._store.apply_fixed(coord, source)
        logger.info("location fixed source={} at {:.5f},{:.5f}", source.value, coord.latitude, coord.longitude)
        return self._store.state

    async def set_from_address_text(self, text: str) -> LocationState:
        """
        Geocode *text* (with the city context appended) and pin the result.

        Failures are stored as the state's error; the current location is kept.
        A reply that arrives after a newer pin, commit or clear is dropped.
        """
        self._token += 1
        token = self._token
        if not text or not text.strip():
            self._store.set_error(EMPTY_ADDRESS_ERROR)
            return self._store.state
        if self._geocoder is None:
            self._store.set_error(provider_error_descriptor("REQUEST_DENIED"))
            return self._store.state

        query = f"{text.strip()}{self._context}"
        coord = None
        error: Optional[ErrorDescriptor] = None
        try:
            coord = await asyncio.to_thread(self._geocoder.geocode, query)
        except PlacesProviderError as exc:
            logger.warning("geocoding failed for {!r} status={} detail={}", query, exc.status, exc.detail)
            error = provider_error_descriptor(exc.status)
        except Exception as exc:
            logger.exception("geocoding failed for {!r}: {}", query, exc)
            error = provider_error_descriptor(None)

        if token != self._token:
            logger.debug("discarding stale geocode result for {!r}", query)
            return self._store.state
        if error is None and not isinstance(coord, Coordinate):
            logger.warning("geocoder returned malformed result {!r}", coord)
            error = provider_error_descriptor(None)
        if error is not None:
            self._store.set_error(error)
            return self._store.state
        return self.set_coordinate(coord, LocationSource.ADDRESS)

    async def clear(self) -> LocationState:
        """Drop the fixed location and resume GPS-driven tracking."""
        self._token += 1
        self._pending = None
        self._revert_to = None
        self._store.clear_fixed()
        self._tracker.reset_gps_baseline()
        state = await self._tracker.request_once()
        self._tracker.start_watching()
        return state

    # Marker drag: the UI asks the user before the new spot replaces the old one.

    def propose_coordinate(self, coord: Coordinate) -> Optional[Coordinate]:
        """Hold *coord* as a candidate; returns the position to restore on revert."""
        self._pending = coord
        self._revert_to = self._store.state.current
        return self._revert_to

    def commit(self) -> LocationState:
        if self._pending is None:
            raise RuntimeError("no proposed location to commit")
        coord, self._pending, self._revert_to = self._pending, None, None
        return self.set_coordinate(coord, LocationSource.MANUAL)

    def revert(self) -> Optional[Coordinate]:
        previous = self._revert_to
        self._pending = None
        self._revert_to = None
        return previous
