from __future__ import annotations

from datetime import datetime, timezone

import pytest

from config import Configuration
from models import (
    DEFAULT_MARKER_COLOR,
    Category,
    Coordinate,
    GroupFriendly,
    PriceBounds,
    PriceRange,
    Restaurant,
    RestaurantDraft,
    RestaurantOrigin,
    marker_color,
)


def test_coordinate_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        Coordinate(91.0, 0.0)
    with pytest.raises(ValueError):
        Coordinate(0.0, -181.0)


def test_price_range_validation_and_bounds() -> None:
    with pytest.raises(ValueError):
        PriceRange(50, 20)
    with pytest.raises(ValueError):
        PriceRange(-1, 20)
    assert PriceBounds(10, 60).contains(PriceRange(15, 35))
    assert not PriceBounds(10, 30).contains(PriceRange(15, 35))


def test_group_friendly_accepts_key_spellings() -> None:
    flags = GroupFriendly.from_dict({"largeGroup": False})
    assert flags.allows("large_group") is False
    assert flags.allows("Large-Group") is False
    assert flags.allows("family") is True
    assert flags.allows("party") is False


def test_marker_colors() -> None:
    assert marker_color(Category.GOURMET) == "#8B5CF6"
    assert marker_color("street_food") == "#EF4444"
    assert marker_color(None) == DEFAULT_MARKER_COLOR


def test_draft_requires_name() -> None:
    with pytest.raises(ValueError):
        RestaurantDraft(
            name=" ",
            address="",
            district="Lima",
            cuisine_type="Criolla",
            category=Category.LOCAL,
            coordinates=Coordinate(-12.05, -77.04),
            price_range=PriceRange(10, 20),
        )


def test_restaurant_dict_uses_storage_keys() -> None:
    restaurant = Restaurant(
        id="user-1",
        name="Isolina",
        address="Av. San Martín 101",
        district="Barranco",
        cuisine_type="Criolla",
        category=Category.LOCAL,
        coordinates=Coordinate(-12.1456, -77.0175),
        rating=4.6,
        price_range=PriceRange(40, 70),
        opening_hours="12:00 - 23:00",
        group_friendly=GroupFriendly(large_group=False),
        date_added=datetime(2024, 1, 15, tzinfo=timezone.utc),
        contact="+51 1 247-5075",
        origin=RestaurantOrigin.USER,
    )

    data = restaurant.to_dict()

    assert data["type_of_cuisine"] == "Criolla"
    assert data["gps_coordinates"] == {"latitude": -12.1456, "longitude": -77.0175}
    assert data["contact_number"] == "+51 1 247-5075"
    assert Restaurant.from_dict(data) == restaurant


def test_configuration_reads_env(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "abcdefghijklmnop")
    monkeypatch.setenv("SUGGESTION_LIMIT", "5")
    monkeypatch.setenv("DEDUPE_THRESHOLD_DEG", "0.05")

    cfg = Configuration.from_env({"database_path": "/tmp/akipe-test.db"})

    assert cfg.suggestion_limit == 5
    assert cfg.dedupe_threshold_deg == 0.05
    assert cfg.database_path == "/tmp/akipe-test.db"
    assert "abcdefghijklmnop" not in cfg.log_summary()
    cfg.require_google()


def test_configuration_requires_google_key(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    with pytest.raises(ValueError):
        Configuration.from_env().require_google()
