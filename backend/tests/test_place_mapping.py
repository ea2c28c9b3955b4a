from __future__ import annotations

from models import Category, Coordinate, PlaceResult, RestaurantOrigin
from services.place_mapping import (
    LIMA_DISTRICTS,
    category_for_types,
    cuisine_label,
    extract_district,
    price_range_for_level,
    restaurant_from_place,
)


def test_lima_has_43_districts() -> None:
    assert len(LIMA_DISTRICTS) == 43


def test_extract_district_prefers_longest_match() -> None:
    assert extract_district("Av. Los Héroes 120, San Juan de Miraflores 15801") == "San Juan de Miraflores"
    assert extract_district("Av. Larco 123, Miraflores, Lima") == "Miraflores"


def test_extract_district_ignores_accents_and_partial_words() -> None:
    assert extract_district("Jr. Trujillo 300, Rimac") == "Rímac"
    # "ate" inside another word is not the Ate district
    assert extract_district("Calle Los Tomates 12, Lima") == "Lima"
    assert extract_district(None) == "Lima"


def test_price_level_bands_are_clamped() -> None:
    assert (price_range_for_level(None).min, price_range_for_level(None).max) == (0, 15)
    assert (price_range_for_level(2).min, price_range_for_level(2).max) == (35, 70)
    assert price_range_for_level(9).max == 500


def test_category_and_cuisine_from_types() -> None:
    assert category_for_types(["bar", "restaurant"]) is Category.LOCAL
    assert category_for_types(["meal_takeaway"]) is Category.FAST_FOOD
    assert category_for_types(["cafe"]) is Category.CAFE
    assert category_for_types([]) is Category.LOCAL
    assert cuisine_label(["point_of_interest", "cafe"]) == "Café"
    assert cuisine_label([]) == "Restaurante"


def test_restaurant_from_place_fills_defaults() -> None:
    place = PlaceResult(
        place_id="abc",
        name="La Mar",
        formatted_address="Av. Mariscal La Mar 770, Miraflores",
        coordinate=Coordinate(-12.1075, -77.0417),
        rating=None,
        price_level=3,
        types=["restaurant"],
    )

    restaurant = restaurant_from_place(place)

    assert restaurant.id == "abc"
    assert restaurant.district == "Miraflores"
    assert restaurant.rating == 0.0
    assert restaurant.price_range.max == 150
    assert restaurant.origin is RestaurantOrigin.PROVIDER
    assert restaurant.opening_hours == "Horarios no disponibles"
    assert restaurant.group_friendly.allows("large_group")
