from __future__ import annotations

from typing import List, Optional, Protocol

from models import Coordinate, DirectionsResult, PlaceResult, TravelMode


class PlacesProviderError(RuntimeError):
    """Provider call failed; ``status`` is the provider's status string."""

    def __init__(self, status: str, detail: str = ""):
        self.status = status
        self.detail = detail
        super().__init__(f"{status}: {detail}" if detail else status)


class PlacesProvider(Protocol):
    def nearby_search(self, origin: Coordinate, radius_m: float) -> List[PlaceResult]:
        ...

    def text_search(
        self, query: str, origin: Optional[Coordinate] = None, radius_m: Optional[float] = None
    ) -> List[PlaceResult]:
        ...


class GeocodingProvider(Protocol):
    def geocode(self, address: str) -> Coordinate:
        ...


class DirectionsProvider(Protocol):
    def directions(
        self, origin: Coordinate, destination: Coordinate, mode: TravelMode
    ) -> DirectionsResult:
        ...
