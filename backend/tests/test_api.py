from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

import main
from models import Coordinate, PlaceResult
from services.persistence import InMemoryRestaurantRepository
from services.providers import PlacesProviderError


@pytest.fixture()
def repository():
    repo = InMemoryRestaurantRepository()
    main.app.dependency_overrides[main.get_repository] = lambda: repo
    main.app.dependency_overrides[main.get_places_provider] = lambda: None
    yield repo
    main.app.dependency_overrides.clear()


@pytest.fixture()
def client(repository):
    return TestClient(main.app)


def _payload(**overrides) -> dict:
    body = {
        "name": "Isolina",
        "address": "Av. San Martín 101",
        "district": "Barranco",
        "type_of_cuisine": "Criolla",
        "category": "local",
        "gps_coordinates": {"latitude": -12.1456, "longitude": -77.0175},
        "rating": 4.6,
        "price_range": {"min": 40, "max": 70},
        "group_friendly": {"solo": True, "couple": True, "family": True, "large_group": False},
    }
    body.update(overrides)
    return body


def test_healthz(client) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_create_generates_user_id_and_lists(client, repository) -> None:
    resp = client.post("/api/restaurants", json=_payload())
    assert resp.status_code == 200
    created = resp.json()
    assert created["id"].startswith("user-")
    assert created["origin"] == "user"

    listed = client.get("/api/restaurants").json()
    assert [r["id"] for r in listed] == [created["id"]]


def test_post_with_id_upserts(client, repository) -> None:
    client.post("/api/restaurants", json=_payload(id="user-fixed"))
    client.post("/api/restaurants", json=_payload(id="user-fixed", name="Isolina Taberna"))

    listed = client.get("/api/restaurants").json()
    assert len(listed) == 1
    assert listed[0]["name"] == "Isolina Taberna"


@pytest.mark.parametrize(
    "overrides",
    [
        {"price_range": {"min": 70, "max": 40}},
        {"gps_coordinates": {"latitude": 120, "longitude": -77.0}},
        {"category": "spaceship"},
        {"name": "   "},
        {"rating": -1},
    ],
)
def test_invalid_restaurant_is_rejected(client, repository, overrides) -> None:
    resp = client.post("/api/restaurants", json=_payload(**overrides))
    assert resp.status_code == 400
    assert repository.list() == []


def test_search_filters_persisted_records(client) -> None:
    client.post("/api/restaurants", json=_payload())
    client.post(
        "/api/restaurants",
        json=_payload(
            name="Cevichería del Centro",
            district="Cercado de Lima",
            type_of_cuisine="Mariscos",
            gps_coordinates={"latitude": -12.0554, "longitude": -77.0428},
            price_range={"min": 20, "max": 40},
        ),
    )

    near = client.get(
        "/api/restaurants/search", params={"lat": -12.0464, "lon": -77.0428, "radius": 5000}
    ).json()
    assert [r["name"] for r in near] == ["Cevichería del Centro"]

    ordered = client.get("/api/restaurants/search", params={"lat": -12.0464, "lon": -77.0428}).json()
    assert [r["name"] for r in ordered] == ["Cevichería del Centro", "Isolina"]

    cheap = client.get("/api/restaurants/search", params={"price_max": 50}).json()
    assert [r["name"] for r in cheap] == ["Cevichería del Centro"]

    groups = client.get("/api/restaurants/search", params={"group": "large_group"}).json()
    assert [r["name"] for r in groups] == []


def test_search_needs_both_coordinates(client) -> None:
    assert client.get("/api/restaurants/search", params={"lat": -12.0}).status_code == 400


def test_fetch_from_google_requires_provider(client) -> None:
    assert client.post("/api/restaurants/fetch-from-google", json={}).status_code == 400


def test_fetch_from_google_imports(client, repository) -> None:
    provider = MagicMock()
    provider.nearby_search.return_value = [
        PlaceResult("p1", "Maido", "Calle San Martín 399, Miraflores", Coordinate(-12.1197, -77.0335)),
    ]
    main.app.dependency_overrides[main.get_places_provider] = lambda: provider

    resp = client.post("/api/restaurants/fetch-from-google", json={"radius": 2000})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["unique"] == 1
    assert body["saved"] == 1
    assert repository.get("p1")["district"] == "Miraflores"
    assert provider.nearby_search.call_args.args[1] == 2000


def test_fetch_from_google_reports_failed_centres(client) -> None:
    provider = MagicMock()
    provider.nearby_search.side_effect = PlacesProviderError("REQUEST_DENIED", "bad key")
    main.app.dependency_overrides[main.get_places_provider] = lambda: provider

    body = client.post("/api/restaurants/fetch-from-google", json={}).json()

    assert body["saved"] == 0
    assert len(body["failed_centers"]) == 6


def test_posted_restaurants_are_always_user_owned(client, repository) -> None:
    created = client.post("/api/restaurants", json=_payload(origin="provider")).json()

    assert created["origin"] == "user"
    assert repository.get(created["id"])["origin"] == "user"
