from __future__ import annotations

from services.persistence import InMemoryRestaurantRepository, SqliteRestaurantRepository
from services.seed import SEED_RESTAURANTS, seed_restaurants


def test_sqlite_upsert_replaces_by_id(tmp_path) -> None:
    with SqliteRestaurantRepository(tmp_path / "store" / "akipe.db") as repo:
        repo.upsert("user-1", {"id": "user-1", "name": "Isolina"})
        repo.upsert("user-2", {"id": "user-2", "name": "Central"})
        repo.upsert("user-1", {"id": "user-1", "name": "Isolina Taberna"})

        assert [r["name"] for r in repo.list()] == ["Isolina Taberna", "Central"]
        assert repo.get("user-2") == {"id": "user-2", "name": "Central"}
        assert repo.get("missing") is None


def test_sqlite_keeps_non_ascii_text(tmp_path) -> None:
    path = tmp_path / "akipe.db"
    with SqliteRestaurantRepository(path) as repo:
        repo.upsert("user-1", {"id": "user-1", "name": "Pollería Doña Pepa"})

    with SqliteRestaurantRepository(path) as reopened:
        assert reopened.get("user-1")["name"] == "Pollería Doña Pepa"


def test_in_memory_returns_copies() -> None:
    repo = InMemoryRestaurantRepository()
    record = {"id": "a", "name": "Tanta"}
    repo.upsert("a", record)
    record["name"] = "changed"

    listed = repo.list()
    listed[0]["name"] = "also changed"

    assert repo.get("a") == {"id": "a", "name": "Tanta"}


def test_seed_restaurants_round_trip_through_storage() -> None:
    repo = InMemoryRestaurantRepository()
    restaurants = seed_restaurants()
    for restaurant in restaurants:
        repo.upsert(restaurant.id, restaurant.to_dict())

    assert len(repo.list()) == len(SEED_RESTAURANTS)
    central = next(r for r in restaurants if r.name == "Central")
    assert central.group_friendly.allows("solo") is False
    assert central.price_range.min == 280
