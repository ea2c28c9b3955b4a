"""Data models for the Lima restaurant discovery core."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, data: dict) -> "Coordinate":
        return cls(latitude=float(data["latitude"]), longitude=float(data["longitude"]))


LIMA_CENTER = Coordinate(-12.0464, -77.0428)


class LocationSource(str, Enum):
    GPS = "gps"
    MANUAL = "manual"
    ADDRESS = "address"
    NONE = "none"


@dataclass(frozen=True)
class ErrorDescriptor:
    kind: str
    message: str
    retryable: bool = True


@dataclass(frozen=True)
class LocationState:
    current: Optional[Coordinate] = None
    source: LocationSource = LocationSource.NONE
    fixed: Optional[Coordinate] = None
    error: Optional[ErrorDescriptor] = None
    loading: bool = False

    @property
    def is_fixed(self) -> bool:
        return self.fixed is not None


class Category(str, Enum):
    LOCAL = "local"
    FAST_FOOD = "fast_food"
    GOURMET = "gourmet"
    STREET_FOOD = "street_food"
    CAFE = "cafe"
    BAKERY = "bakery"


# Marker colours used by the map layer.
CATEGORY_COLORS: Dict[str, str] = {
    Category.LOCAL.value: "#10B981",
    Category.FAST_FOOD.value: "#F59E0B",
    Category.GOURMET.value: "#8B5CF6",
    Category.STREET_FOOD.value: "#EF4444",
    Category.CAFE.value: "#06B6D4",
    Category.BAKERY.value: "#F97316",
}
DEFAULT_MARKER_COLOR = "#3B82F6"


def marker_color(category: Optional[str]) -> str:
    if isinstance(category, Category):
        category = category.value
    return CATEGORY_COLORS.get(category or "", DEFAULT_MARKER_COLOR)


class RestaurantOrigin(str, Enum):
    PROVIDER = "provider"
    USER = "user"


@dataclass(frozen=True)
class PriceRange:
    min: int
    max: int
    currency: str = "S/"

    def __post_init__(self) -> None:
        if self.min < 0:
            raise ValueError("price_range.min must be >= 0")
        if self.min > self.max:
            raise ValueError("price_range.min must be <= price_range.max")

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max, "currency": self.currency}


@dataclass(frozen=True)
class PriceBounds:
    """Requested price window in a search."""

    min: float
    max: float

    def contains(self, price: PriceRange) -> bool:
        return price.min >= self.min and price.max <= self.max


_GROUP_KEYS = {
    "solo": "solo",
    "couple": "couple",
    "family": "family",
    "large_group": "large_group",
    "largegroup": "large_group",
    "large-group": "large_group",
}


@dataclass(frozen=True)
class GroupFriendly:
    solo: bool = True
    couple: bool = True
    family: bool = True
    large_group: bool = True

    def allows(self, group_type: str) -> bool:
        """Unknown group types never match."""
        key = _GROUP_KEYS.get(group_type.strip().lower())
        if key is None:
            return False
        return bool(getattr(self, key))

    def to_dict(self) -> dict:
        return {
            "solo": self.solo,
            "couple": self.couple,
            "family": self.family,
            "large_group": self.large_group,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "GroupFriendly":
        data = data or {}
        return cls(
            solo=bool(data.get("solo", True)),
            couple=bool(data.get("couple", True)),
            family=bool(data.get("family", True)),
            large_group=bool(data.get("large_group", data.get("largeGroup", True))),
        )


@dataclass(frozen=True)
class RestaurantDraft:
    name: str
    address: str
    district: str
    cuisine_type: str
    category: Category
    coordinates: Coordinate
    price_range: PriceRange
    rating: float = 0.0
    opening_hours: str = "Horarios no disponibles"
    contact: Optional[str] = None
    wait_time: str = "Tiempo variable"
    group_friendly: GroupFriendly = field(default_factory=GroupFriendly)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name is required")
        if self.rating < 0:
            raise ValueError("rating must be >= 0")


@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    address: str
    district: str
    cuisine_type: str
    category: Category
    coordinates: Coordinate
    rating: float
    price_range: PriceRange
    opening_hours: str
    group_friendly: GroupFriendly
    date_added: datetime
    contact: Optional[str] = None
    wait_time: str = "Tiempo variable"
    origin: RestaurantOrigin = RestaurantOrigin.PROVIDER

    @classmethod
    def from_draft(
        cls,
        draft: RestaurantDraft,
        *,
        id: str,
        date_added: Optional[datetime] = None,
        origin: RestaurantOrigin = RestaurantOrigin.USER,
    ) -> "Restaurant":
        return cls(
            id=id,
            name=draft.name,
            address=draft.address,
            district=draft.district,
            cuisine_type=draft.cuisine_type,
            category=draft.category,
            coordinates=draft.coordinates,
            rating=draft.rating,
            price_range=draft.price_range,
            opening_hours=draft.opening_hours,
            group_friendly=draft.group_friendly,
            date_added=date_added or datetime.now(timezone.utc),
            contact=draft.contact,
            wait_time=draft.wait_time,
            origin=origin,
        )

    def with_changes(self, **changes: Any) -> "Restaurant":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to a plain dictionary (useful for JSON serialisation)."""
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "district": self.district,
            "type_of_cuisine": self.cuisine_type,
            "category": self.category.value,
            "gps_coordinates": self.coordinates.to_dict(),
            "rating": self.rating,
            "price_range": self.price_range.to_dict(),
            "opening_hours": self.opening_hours,
            "contact_number": self.contact,
            "wait_time": self.wait_time,
            "group_friendly": self.group_friendly.to_dict(),
            "date_added": self.date_added.isoformat(),
            "origin": self.origin.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Restaurant":
        price = data.get("price_range") or {}
        raw_date = data.get("date_added")
        if isinstance(raw_date, datetime):
            date_added = raw_date
        elif raw_date:
            date_added = datetime.fromisoformat(str(raw_date))
        else:
            date_added = datetime.now(timezone.utc)
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            address=str(data.get("address") or ""),
            district=str(data.get("district") or "Lima"),
            cuisine_type=str(data.get("type_of_cuisine") or data.get("cuisine_type") or "Restaurante"),
            category=Category(data.get("category") or Category.LOCAL.value),
            coordinates=Coordinate.from_dict(data.get("gps_coordinates") or data["coordinates"]),
            rating=float(data.get("rating") or 0.0),
            price_range=PriceRange(
                min=int(price.get("min", 0)),
                max=int(price.get("max", 0)),
                currency=str(price.get("currency") or "S/"),
            ),
            opening_hours=str(data.get("opening_hours") or "Horarios no disponibles"),
            group_friendly=GroupFriendly.from_dict(data.get("group_friendly")),
            date_added=date_added,
            contact=data.get("contact_number") or data.get("contact"),
            wait_time=str(data.get("wait_time") or "Tiempo variable"),
            origin=RestaurantOrigin(data.get("origin") or RestaurantOrigin.USER.value),
        )


@dataclass(frozen=True)
class SearchFilters:
    text: str = ""
    radius_meters: Optional[float] = None
    group_type: Optional[str] = None
    price_range: Optional[PriceBounds] = None


@dataclass(frozen=True)
class RankedSuggestion:
    restaurant: Restaurant
    distance_km: Optional[float] = None
    # False for provider matches that are not in the catalog yet
    imported: bool = True


@dataclass(frozen=True)
class PlaceResult:
    """One row of a places search, already validated at the client edge."""

    place_id: str
    name: str
    formatted_address: str
    coordinate: Coordinate
    rating: Optional[float] = None
    price_level: Optional[int] = None
    types: List[str] = field(default_factory=list)
    opening_hours: Optional[str] = None


class TravelMode(str, Enum):
    WALKING = "walking"
    DRIVING = "driving"


@dataclass(frozen=True)
class RouteStep:
    instruction_text: str
    distance_text: str
    duration_text: str
    maneuver_type: Optional[str] = None


@dataclass(frozen=True)
class DirectionsResult:
    steps: List[RouteStep]
    total_distance_text: str
    total_duration_text: str
    mode: TravelMode = TravelMode.WALKING
