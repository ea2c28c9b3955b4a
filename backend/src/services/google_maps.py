from __future__ import annotations

import html
import re
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import requests
from loguru import logger

from config import Configuration
from models import Coordinate, DirectionsResult, PlaceResult, RouteStep, TravelMode
from services.providers import PlacesProviderError

_TAG_RE = re.compile(r"<[^>]+>")

_RETRYABLE_HTTP = (429, 500, 502, 503, 504)


@dataclass
class _RetryPolicy:
    retries: int = 3
    base_delay: float = 0.5


def _clean_instruction(raw: str) -> str:
    text = _TAG_RE.sub(" ", raw or "")
    return " ".join(html.unescape(text).split())


class GoogleMapsClient:
    """Blocking client for the Google Maps places, geocoding and directions APIs."""

    def __init__(self, cfg: Configuration, session: Optional[requests.Session] = None) -> None:
        self.cfg = cfg
        self.base = cfg.sanitized_base_url()
        self.session = session or requests.Session()
        self._policy = _RetryPolicy(retries=cfg.google_maps_retries)
        self._cache_ttl = 60 * 30  # 30 minutes
        self._cache_max = 128
        self._geocode_cache: OrderedDict[str, Tuple[float, Coordinate]] = OrderedDict()
        self._places_cache: OrderedDict[str, Tuple[float, List[PlaceResult]]] = OrderedDict()

    def _cache_get(self, cache: OrderedDict, key: str):
        entry = cache.get(key)
        if not entry:
            return None
        ts, value = entry
        if time.time() - ts > self._cache_ttl:
            cache.pop(key, None)
            return None
        cache.move_to_end(key)
        return value

    def _cache_set(self, cache: OrderedDict, key: str, value) -> None:
        if len(cache) >= self._cache_max:
            cache.popitem(last=False)
        cache[key] = (time.time(), value)

    def _get(self, path: str, params: dict) -> dict:
        url = f"{self.base}{path}"
        headers = {"Accept": "application/json"}
        params = {**params, "key": self.cfg.google_maps_api_key, "language": self.cfg.lang_default}
        policy = self._policy
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self.session.get(url, headers=headers, params=params, timeout=self.cfg.google_maps_timeout)
            except requests.RequestException as exc:
                if attempt <= policy.retries:
                    time.sleep(policy.base_delay * attempt)
                    continue
                raise PlacesProviderError("UNKNOWN_ERROR", f"request error: {exc}")

            if resp.status_code in _RETRYABLE_HTTP:
                if attempt <= policy.retries:
                    time.sleep(policy.base_delay * attempt)
                    continue
                if resp.status_code == 429:
                    raise PlacesProviderError("OVER_QUERY_LIMIT", f"upstream {resp.status_code}")
                raise PlacesProviderError("UNKNOWN_ERROR", f"upstream {resp.status_code}: {resp.text[:300]}")

            if not resp.ok:
                status = "REQUEST_DENIED" if resp.status_code in (401, 403) else "INVALID_REQUEST"
                raise PlacesProviderError(status, f"upstream {resp.status_code}: {resp.text[:300]}")

            try:
                payload = resp.json()
            except ValueError:
                raise PlacesProviderError("UNKNOWN_ERROR", "invalid json response")
            if not isinstance(payload, dict):
                raise PlacesProviderError("UNKNOWN_ERROR", "unexpected payload shape")
            return payload

    @staticmethod
    def _check_status(payload: dict, *, zero_ok: bool) -> str:
        status = str(payload.get("status") or "UNKNOWN_ERROR").upper()
        if status == "OK" or (zero_ok and status == "ZERO_RESULTS"):
            return status
        raise PlacesProviderError(status, str(payload.get("error_message") or ""))

    # ── Places ────────────────────────────────────────────────────

    @staticmethod
    def _parse_location(raw: Any) -> Optional[Coordinate]:
        if not isinstance(raw, dict):
            return None
        loc = (raw.get("geometry") or {}).get("location") or {}
        lat = loc.get("lat")
        lng = loc.get("lng")
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            return None
        try:
            return Coordinate(float(lat), float(lng))
        except ValueError:
            return None

    def _parse_places(self, results: Any) -> List[PlaceResult]:
        if not isinstance(results, list):
            raise PlacesProviderError("UNKNOWN_ERROR", "results is not a list")
        places: list[PlaceResult] = []
        for index, item in enumerate(results):
            coordinate = self._parse_location(item)
            if coordinate is None:
                logger.debug("skipping place without usable location: {!r}", item)
                continue
            rating = item.get("rating")
            price_level = item.get("price_level")
            hours = item.get("opening_hours") or {}
            weekday = hours.get("weekday_text") if isinstance(hours, dict) else None
            types = item.get("types") if isinstance(item.get("types"), list) else []
            places.append(
                PlaceResult(
                    place_id=str(item.get("place_id") or f"google-{index}"),
                    name=str(item.get("name") or "Restaurant"),
                    formatted_address=str(item.get("formatted_address") or item.get("vicinity") or ""),
                    coordinate=coordinate,
                    rating=float(rating) if isinstance(rating, (int, float)) else None,
                    price_level=int(price_level) if isinstance(price_level, int) else None,
                    types=[str(t) for t in types],
                    opening_hours=", ".join(str(w) for w in weekday) if isinstance(weekday, list) and weekday else None,
                )
            )
        return places

    def nearby_search(self, origin: Coordinate, radius_m: float) -> List[PlaceResult]:
        # Nearby search caps the radius at 50 km.
        radius = max(1.0, min(radius_m, 50_000.0))
        key = f"nearby:{origin.latitude:.4f},{origin.longitude:.4f}:{radius:.0f}"
        cached = self._cache_get(self._places_cache, key)
        if cached is not None:
            return list(cached)
        payload = self._get(
            "/place/nearbysearch/json",
            {
                "location": f"{origin.latitude},{origin.longitude}",
                "radius": f"{radius:.0f}",
                "type": "restaurant",
            },
        )
        self._check_status(payload, zero_ok=True)
        results = self._parse_places(payload.get("results") or [])
        self._cache_set(self._places_cache, key, list(results))
        return results

    def text_search(
        self, query: str, origin: Optional[Coordinate] = None, radius_m: Optional[float] = None
    ) -> List[PlaceResult]:
        text = query.strip()
        if not text:
            raise PlacesProviderError("INVALID_REQUEST", "empty query")
        params: dict[str, Any] = {"query": text, "type": "restaurant"}
        key = f"text:{text.lower()}"
        if origin is not None:
            params["location"] = f"{origin.latitude},{origin.longitude}"
            params["radius"] = f"{max(1.0, min(radius_m or 50_000.0, 50_000.0)):.0f}"
            key += f":{origin.latitude:.4f},{origin.longitude:.4f}:{params['radius']}"
        cached = self._cache_get(self._places_cache, key)
        if cached is not None:
            return list(cached)
        payload = self._get("/place/textsearch/json", params)
        self._check_status(payload, zero_ok=True)
        results = self._parse_places(payload.get("results") or [])
        self._cache_set(self._places_cache, key, list(results))
        return results

    # ── Geocoding ─────────────────────────────────────────────────

    def geocode(self, address: str) -> Coordinate:
        text = address.strip()
        if not text:
            raise PlacesProviderError("INVALID_REQUEST", "empty address")
        key = f"geocode:{text.lower()}"
        cached = self._cache_get(self._geocode_cache, key)
        if cached is not None:
            return cached
        payload = self._get("/geocode/json", {"address": text, "region": "pe"})
        self._check_status(payload, zero_ok=False)
        results = payload.get("results")
        if not isinstance(results, list) or not results:
            raise PlacesProviderError("ZERO_RESULTS", text)
        coordinate = self._parse_location(results[0])
        if coordinate is None:
            raise PlacesProviderError("UNKNOWN_ERROR", "geocode result without location")
        self._cache_set(self._geocode_cache, key, coordinate)
        return coordinate

    # ── Directions ────────────────────────────────────────────────

    def directions(self, origin: Coordinate, destination: Coordinate, mode: TravelMode) -> DirectionsResult:
        payload = self._get(
            "/directions/json",
            {
                "origin": f"{origin.latitude},{origin.longitude}",
                "destination": f"{destination.latitude},{destination.longitude}",
                "mode": TravelMode(mode).value,
            },
        )
        self._check_status(payload, zero_ok=False)
        try:
            leg = payload["routes"][0]["legs"][0]
            steps = [
                RouteStep(
                    instruction_text=_clean_instruction(step.get("html_instructions", "")),
                    distance_text=str((step.get("distance") or {}).get("text", "")),
                    duration_text=str((step.get("duration") or {}).get("text", "")),
                    maneuver_type=step.get("maneuver"),
                )
                for step in leg.get("steps") or []
            ]
            return DirectionsResult(
                steps=steps,
                total_distance_text=str((leg.get("distance") or {}).get("text", "")),
                total_duration_text=str((leg.get("duration") or {}).get("text", "")),
                mode=TravelMode(mode),
            )
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise PlacesProviderError("UNKNOWN_ERROR", f"malformed directions payload: {exc}")
