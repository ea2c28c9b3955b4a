"""Built-in Lima restaurants used when the places provider is unavailable."""

from __future__ import annotations

from typing import Dict, List

from models import Restaurant, RestaurantOrigin

SEED_RESTAURANTS: List[Dict[str, object]] = [
    {
        "id": "seed-1",
        "name": "Restaurante El Pescador",
        "address": "Av. Ancón 123",
        "district": "Ancón",
        "type_of_cuisine": "Mariscos",
        "gps_coordinates": {"latitude": -11.7667, "longitude": -77.1667},
        "opening_hours": "11:00 - 22:00",
        "contact_number": "+51 1 552-1234",
        "price_range": {"min": 25, "max": 50, "currency": "S/"},
        "category": "local",
        "rating": 4.2,
        "wait_time": "15-20 min",
        "group_friendly": {"solo": True, "couple": True, "family": True, "large_group": True},
    },
    {
        "id": "seed-2",
        "name": "Pollería Don Pollo",
        "address": "Av. Nicolás Ayllón 2456",
        "district": "Ate",
        "type_of_cuisine": "Pollo a la Brasa",
        "gps_coordinates": {"latitude": -12.0333, "longitude": -76.9167},
        "opening_hours": "11:00 - 23:00",
        "contact_number": "+51 1 326-7890",
        "price_range": {"min": 18, "max": 35, "currency": "S/"},
        "category": "local",
        "rating": 4.1,
        "wait_time": "12-18 min",
        "group_friendly": {"solo": True, "couple": True, "family": True, "large_group": True},
    },
    {
        "id": "seed-3",
        "name": "KFC Ate",
        "address": "Av. Separadora Industrial 1234",
        "district": "Ate",
        "type_of_cuisine": "Pollo Frito",
        "gps_coordinates": {"latitude": -12.0289, "longitude": -76.9234},
        "opening_hours": "10:00 - 23:00",
        "contact_number": "+51 1 326-5555",
        "price_range": {"min": 12, "max": 30, "currency": "S/"},
        "category": "fast_food",
        "rating": 3.8,
        "wait_time": "8-12 min",
        "group_friendly": {"solo": True, "couple": True, "family": True, "large_group": True},
    },
    {
        "id": "seed-4",
        "name": "Central",
        "address": "Av. Pedro de Osma 301",
        "district": "Barranco",
        "type_of_cuisine": "Alta Cocina Peruana",
        "gps_coordinates": {"latitude": -12.1456, "longitude": -77.0208},
        "opening_hours": "19:00 - 24:00",
        "contact_number": "+51 1 242-8515",
        "price_range": {"min": 280, "max": 450, "currency": "S/"},
        "category": "gourmet",
        "rating": 4.9,
        "wait_time": "25-30 min",
        "group_friendly": {"solo": False, "couple": True, "family": True, "large_group": False},
    },
    {
        "id": "seed-5",
        "name": "Isolina",
        "address": "Av. San Martín 101",
        "district": "Barranco",
        "type_of_cuisine": "Criolla",
        "gps_coordinates": {"latitude": -12.1456, "longitude": -77.0175},
        "opening_hours": "12:00 - 23:00",
        "contact_number": "+51 1 247-5075",
        "price_range": {"min": 40, "max": 70, "currency": "S/"},
        "category": "local",
        "rating": 4.6,
        "wait_time": "20-25 min",
        "group_friendly": {"solo": True, "couple": True, "family": True, "large_group": False},
    },
]


def seed_restaurants() -> List[Restaurant]:
    return [
        Restaurant.from_dict({**record, "origin": RestaurantOrigin.PROVIDER.value, "date_added": "2024-01-15"})
        for record in SEED_RESTAURANTS
    ]
