from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from config import Configuration
from models import Coordinate, PriceBounds, Restaurant, RestaurantOrigin, SearchFilters
from services.bulk_import import LIMA_SEARCH_CENTERS, import_from_provider
from services.catalog import RestaurantCatalog
from services.persistence import RestaurantRepository, SqliteRestaurantRepository
from services.providers import PlacesProvider, PlacesProviderError
from services.session import build_google_client

load_dotenv()

app = FastAPI(title="Akipe Lima Restaurants")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def _repository() -> SqliteRestaurantRepository:
    cfg = Configuration.from_env()
    logger.info("opening restaurant store at {}", cfg.database_path)
    return SqliteRestaurantRepository(cfg.database_path)


def get_config() -> Configuration:
    return Configuration.from_env()


def get_repository() -> RestaurantRepository:
    return _repository()


def get_places_provider(cfg: Configuration = Depends(get_config)) -> Optional[PlacesProvider]:
    return build_google_client(cfg)


class CoordinatePayload(BaseModel):
    latitude: float
    longitude: float


class PricePayload(BaseModel):
    min: int = 0
    max: int = 0
    currency: str = "S/"


class GroupFriendlyPayload(BaseModel):
    solo: bool = True
    couple: bool = True
    family: bool = True
    large_group: bool = True


class RestaurantPayload(BaseModel):
    id: Optional[str] = Field(None, description="Existing id to update; generated when missing")
    name: str
    address: str = ""
    district: str = "Lima"
    type_of_cuisine: str = "Restaurante"
    category: str = "local"
    gps_coordinates: CoordinatePayload
    rating: float = 0.0
    price_range: PricePayload = Field(default_factory=PricePayload)
    opening_hours: Optional[str] = None
    contact_number: Optional[str] = None
    wait_time: Optional[str] = None
    group_friendly: GroupFriendlyPayload = Field(default_factory=GroupFriendlyPayload)
    date_added: Optional[str] = None


class FetchRequest(BaseModel):
    radius: Optional[float] = Field(None, description="Search radius per centre, in meters")


@app.get("/healthz")
def healthz(cfg: Configuration = Depends(get_config)) -> dict:
    logger.info("cfg: {}", cfg.log_summary())
    return {"status": "ok"}


@app.get("/api/restaurants")
async def list_restaurants(repository: RestaurantRepository = Depends(get_repository)) -> List[Dict[str, Any]]:
    try:
        return await asyncio.to_thread(repository.list)
    except Exception as exc:
        logger.exception("listing restaurants failed: {}", exc)
        raise HTTPException(status_code=500, detail="internal error")


@app.post("/api/restaurants")
async def save_restaurant(
    payload: RestaurantPayload,
    repository: RestaurantRepository = Depends(get_repository),
) -> Dict[str, Any]:
    record = payload.model_dump(exclude_none=True)
    record.setdefault("id", f"user-{uuid.uuid4().hex}")
    record["origin"] = RestaurantOrigin.USER.value
    record.setdefault("date_added", datetime.now(timezone.utc).isoformat())
    try:
        if not record["name"].strip():
            raise ValueError("name is required")
        if record["rating"] < 0:
            raise ValueError("rating must be >= 0")
        restaurant = Restaurant.from_dict(record)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        await asyncio.to_thread(repository.upsert, restaurant.id, restaurant.to_dict())
    except Exception as exc:
        logger.exception("saving restaurant {} failed: {}", restaurant.id, exc)
        raise HTTPException(status_code=500, detail="internal error")
    logger.info("restaurant saved id={} name={}", restaurant.id, restaurant.name)
    return restaurant.to_dict()


@app.post("/api/restaurants/fetch-from-google")
async def fetch_from_google(
    req: Optional[FetchRequest] = None,
    cfg: Configuration = Depends(get_config),
    repository: RestaurantRepository = Depends(get_repository),
    provider: Optional[PlacesProvider] = Depends(get_places_provider),
) -> Dict[str, Any]:
    if provider is None:
        raise HTTPException(status_code=400, detail="GOOGLE_MAPS_API_KEY is required")
    radius = req.radius if req is not None and req.radius is not None else cfg.import_radius_m
    if radius <= 0:
        raise HTTPException(status_code=400, detail="radius must be positive")

    try:
        report = await asyncio.to_thread(
            import_from_provider,
            provider,
            repository,
            centers=LIMA_SEARCH_CENTERS,
            radius_m=radius,
            dedupe_threshold_deg=cfg.dedupe_threshold_deg,
        )
    except PlacesProviderError as exc:
        raise HTTPException(status_code=502, detail=f"{exc.status}: {exc.detail}")
    except Exception as exc:
        logger.exception("provider import failed: {}", exc)
        raise HTTPException(status_code=500, detail="internal error")
    return {"success": True, **report.to_dict()}


@app.get("/api/restaurants/search")
async def search_restaurants(
    q: str = "",
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    radius: Optional[float] = None,
    group: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    repository: RestaurantRepository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    try:
        if (lat is None) != (lon is None):
            raise ValueError("lat and lon must be given together")
        origin = Coordinate(lat, lon) if lat is not None and lon is not None else None
        price = None
        if price_min is not None or price_max is not None:
            price = PriceBounds(
                min=price_min if price_min is not None else 0,
                max=price_max if price_max is not None else float("inf"),
            )
        filters = SearchFilters(text=q, radius_meters=radius, group_type=group, price_range=price)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    catalog = RestaurantCatalog(None, repository)
    await catalog.load_persisted()
    if catalog.error is not None:
        raise HTTPException(status_code=500, detail=catalog.error.message)

    results = catalog.apply_filters(filters, origin)
    logger.info("search q={!r} origin={} results={}", q, origin, len(results))
    return [r.to_dict() for r in results]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8010, reload=True)
