from __future__ import annotations

import asyncio
import urllib.parse
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from models import Coordinate, DirectionsResult, ErrorDescriptor, TravelMode
from services.errors import provider_error_descriptor
from services.providers import DirectionsProvider, PlacesProviderError


@dataclass(frozen=True)
class RouteOutcome:
    result: Optional[DirectionsResult]
    fallback_url: str
    error: Optional[ErrorDescriptor] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def fallback_directions_url(origin: Coordinate, destination: Coordinate, mode: TravelMode) -> str:
    """Public Google Maps URL with the same route, used when the API call fails."""
    params = {
        "api": "1",
        "origin": f"{origin.latitude},{origin.longitude}",
        "destination": f"{destination.latitude},{destination.longitude}",
        "travelmode": TravelMode(mode).value,
    }
    return f"https://www.google.com/maps/dir/?{urllib.parse.urlencode(params)}"


async def plan_route(
    provider: Optional[DirectionsProvider],
    origin: Coordinate,
    destination: Coordinate,
    mode: TravelMode = TravelMode.WALKING,
) -> RouteOutcome:
    fallback = fallback_directions_url(origin, destination, mode)
    if provider is None:
        return RouteOutcome(result=None, fallback_url=fallback, error=provider_error_descriptor("REQUEST_DENIED"))
    try:
        result = await asyncio.to_thread(provider.directions, origin, destination, mode)
    except PlacesProviderError as exc:
        logger.warning("directions failed status={} detail={}", exc.status, exc.detail)
        return RouteOutcome(result=None, fallback_url=fallback, error=provider_error_descriptor(exc.status))
    except Exception as exc:
        logger.exception("directions failed: {}", exc)
        return RouteOutcome(result=None, fallback_url=fallback, error=provider_error_descriptor(None))
    return RouteOutcome(result=result, fallback_url=fallback)
