from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

from utils import mask_secret


class Configuration(BaseModel):
    # Google Maps web services
    google_maps_api_key: Optional[str] = Field(default=None)
    google_maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    google_maps_timeout: int = Field(default=15)
    google_maps_retries: int = Field(default=3)

    # Catalog / search
    provider_search_radius_m: float = Field(default=100_000.0)
    default_lat: float = Field(default=-12.0464)
    default_lon: float = Field(default=-77.0428)
    suggestion_limit: int = Field(default=8)
    suggestion_debounce_ms: int = Field(default=300)
    geocode_context: str = Field(default=", Lima, Peru")
    lang_default: str = Field(default="es")

    # Location tracking
    movement_threshold_deg: float = Field(default=0.001)

    # Bulk import
    import_radius_m: float = Field(default=50_000.0)
    # Same-name places closer than this (in degrees on both axes) are merged.
    dedupe_threshold_deg: float = Field(default=0.0005)

    # Persistence
    database_path: str = Field(default="akipe.db")

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "google_maps_api_key": os.getenv("GOOGLE_MAPS_API_KEY"),
            "google_maps_base_url": os.getenv("GOOGLE_MAPS_BASE_URL"),
            "google_maps_timeout": os.getenv("GOOGLE_MAPS_TIMEOUT"),
            "google_maps_retries": os.getenv("GOOGLE_MAPS_RETRIES"),
            "provider_search_radius_m": os.getenv("PROVIDER_SEARCH_RADIUS_M"),
            "default_lat": os.getenv("DEFAULT_LAT"),
            "default_lon": os.getenv("DEFAULT_LON"),
            "suggestion_limit": os.getenv("SUGGESTION_LIMIT"),
            "suggestion_debounce_ms": os.getenv("SUGGESTION_DEBOUNCE_MS"),
            "geocode_context": os.getenv("GEOCODE_CONTEXT"),
            "lang_default": os.getenv("LANG_DEFAULT"),
            "movement_threshold_deg": os.getenv("MOVEMENT_THRESHOLD_DEG"),
            "import_radius_m": os.getenv("IMPORT_RADIUS_M"),
            "dedupe_threshold_deg": os.getenv("DEDUPE_THRESHOLD_DEG"),
            "database_path": os.getenv("DATABASE_PATH"),
        }

        for k, v in env_map.items():
            if v is None:
                continue
            raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    def require_google(self) -> None:
        if not self.google_maps_api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is required")

    def log_summary(self) -> str:
        return (
            "google=%s base=%s timeout=%s search_radius_m=%.0f db=%s lang_default=%s api_key=%s"
            % (
                bool(self.google_maps_api_key),
                self.google_maps_base_url,
                self.google_maps_timeout,
                self.provider_search_radius_m,
                self.database_path,
                self.lang_default,
                mask_secret(self.google_maps_api_key),
            )
        )

    def sanitized_base_url(self) -> str:
        return (self.google_maps_base_url or "https://maps.googleapis.com/maps/api").rstrip("/")
