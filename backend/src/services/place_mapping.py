"""Convert provider place rows into catalog restaurants."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from models import Category, GroupFriendly, PlaceResult, PriceRange, Restaurant, RestaurantOrigin
from utils import strip_accents

LIMA_DISTRICTS = [
    "Ancón", "Ate", "Barranco", "Breña", "Carabayllo", "Chaclacayo",
    "Chorrillos", "Cieneguilla", "Comas", "El Agustino", "Independencia",
    "Jesús María", "La Molina", "La Victoria", "Lima", "Lince",
    "Los Olivos", "Lurigancho", "Lurín", "Magdalena del Mar", "Miraflores",
    "Pachacámac", "Pucusana", "Pueblo Libre", "Puente Piedra", "Punta Hermosa",
    "Punta Negra", "Rímac", "San Bartolo", "San Borja", "San Isidro",
    "San Juan de Lurigancho", "San Juan de Miraflores", "San Luis",
    "San Martín de Porres", "San Miguel", "Santa Anita", "Santa María del Mar",
    "Santa Rosa", "Santiago de Surco", "Surquillo", "Villa El Salvador",
    "Villa María del Triunfo",
]

# Longest names first so "San Juan de Miraflores" wins over "Miraflores"
# and every named district wins over the catch-all "Lima".
_DISTRICT_LOOKUP = sorted(
    (
        (re.compile(r"\b" + re.escape(strip_accents(d).lower()) + r"\b"), d)
        for d in LIMA_DISTRICTS
        if d != "Lima"
    ),
    key=lambda pair: len(pair[1]),
    reverse=True,
)

CUISINE_LABELS = {
    "restaurant": "Restaurante",
    "food": "Comida",
    "bar": "Bar",
    "cafe": "Café",
    "bakery": "Panadería",
    "meal_takeaway": "Para llevar",
    "meal_delivery": "Delivery",
}

PRICE_BANDS = [
    PriceRange(0, 15),
    PriceRange(15, 35),
    PriceRange(35, 70),
    PriceRange(70, 150),
    PriceRange(150, 500),
]


def extract_district(address: Optional[str]) -> str:
    folded = strip_accents(address or "").lower()
    for pattern, district in _DISTRICT_LOOKUP:
        if pattern.search(folded):
            return district
    return "Lima"


def cuisine_label(types: Iterable[str]) -> str:
    for t in types:
        if t in CUISINE_LABELS:
            return CUISINE_LABELS[t]
    return "Restaurante"


def price_range_for_level(price_level: Optional[int]) -> PriceRange:
    level = price_level or 0
    level = max(0, min(level, len(PRICE_BANDS) - 1))
    return PRICE_BANDS[level]


def category_for_types(types: Iterable[str]) -> Category:
    kinds = set(types)
    if kinds & {"bar", "night_club"}:
        return Category.LOCAL
    if kinds & {"fast_food_restaurant", "meal_takeaway"}:
        return Category.FAST_FOOD
    if kinds & {"fine_dining", "restaurant"}:
        return Category.GOURMET
    if "street_food_vendor" in kinds:
        return Category.STREET_FOOD
    if kinds & {"cafe", "coffee_shop"}:
        return Category.CAFE
    if "bakery" in kinds:
        return Category.BAKERY
    return Category.LOCAL


def restaurant_from_place(place: PlaceResult, *, fetched_at: Optional[datetime] = None) -> Restaurant:
    return Restaurant(
        id=place.place_id,
        name=place.name,
        address=place.formatted_address or "Dirección no disponible",
        district=extract_district(place.formatted_address),
        cuisine_type=cuisine_label(place.types),
        category=category_for_types(place.types),
        coordinates=place.coordinate,
        rating=max(place.rating or 0.0, 0.0),
        price_range=price_range_for_level(place.price_level),
        opening_hours=place.opening_hours or "Horarios no disponibles",
        group_friendly=GroupFriendly(),
        date_added=fetched_at or datetime.now(timezone.utc),
        origin=RestaurantOrigin.PROVIDER,
    )


def restaurants_from_places(places: Iterable[PlaceResult]) -> List[Restaurant]:
    fetched_at = datetime.now(timezone.utc)
    return [restaurant_from_place(p, fetched_at=fetched_at) for p in places]
