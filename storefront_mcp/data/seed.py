"""Bundled fallback inventory shown before (or instead of) a live source."""

from __future__ import annotations

from typing import Any

from storefront_mcp.data.store import VehicleStore
from storefront_mcp.normalization import normalize_vehicle

DEMO_VEHICLES: tuple[dict[str, Any], ...] = (
    {
        "id": "1",
        "brand": "Toyota",
        "model": "RAV4 Adventure",
        "year": 2020,
        "price": 26800,
        "mileage": 34000,
        "fuelType": "Gasoline",
        "transmission": "Automatic",
        "location": "Shenzhen",
        "description": (
            "One-owner compact SUV with full service history and Toyota Safety Sense."
        ),
        "images": [
            "https://images.pexels.com/photos/170811/pexels-photo-170811.jpeg",
            "https://images.pexels.com/photos/210019/pexels-photo-210019.jpeg",
            "https://images.pexels.com/photos/358070/pexels-photo-358070.jpeg",
        ],
        "whatsapp": "+8613912345678",
    },
    {
        "id": "2",
        "brand": "BMW",
        "model": "330i M Sport",
        "year": 2019,
        "price": 31800,
        "mileage": 29000,
        "fuelType": "Gasoline",
        "transmission": "Automatic",
        "location": "Guangzhou",
        "description": (
            "Dealer certified sedan with Harman Kardon audio and full M Sport package."
        ),
        "images": [
            "https://images.pexels.com/photos/1402787/pexels-photo-1402787.jpeg",
            "https://images.pexels.com/photos/210019/pexels-photo-210019.jpeg",
        ],
        "whatsapp": "+8613600001111",
    },
    {
        "id": "3",
        "brand": "Tesla",
        "model": "Model 3 Long Range",
        "year": 2021,
        "price": 35200,
        "mileage": 18000,
        "fuelType": "Electric",
        "transmission": "Automatic",
        "location": "Hong Kong",
        "description": "Dual motor AWD with premium connectivity and Enhanced Autopilot.",
        "images": [
            "https://images.pexels.com/photos/799443/pexels-photo-799443.jpeg",
            "https://images.pexels.com/photos/1149831/pexels-photo-1149831.jpeg",
            "https://images.pexels.com/photos/210019/pexels-photo-210019.jpeg",
        ],
        "whatsapp": "+85251234567",
    },
    {
        "id": "4",
        "brand": "Honda",
        "model": "Civic Hatchback",
        "year": 2018,
        "price": 16800,
        "mileage": 52000,
        "fuelType": "Gasoline",
        "transmission": "Manual",
        "location": "Macau",
        "description": (
            "Reliable daily driver with sport exhaust, Apple CarPlay, and two sets of keys."
        ),
        "images": [
            "https://images.pexels.com/photos/210019/pexels-photo-210019.jpeg",
            "https://images.pexels.com/photos/358070/pexels-photo-358070.jpeg",
        ],
        "whatsapp": "+853612345",
    },
)


def seed_vehicles() -> list[dict[str, Any]]:
    """Fresh canonical copies of the bundled inventory."""
    return [normalize_vehicle(v) for v in DEMO_VEHICLES]


def seed_demo_data(store: VehicleStore) -> None:
    """Replace the store's collection with the bundled inventory."""
    store.replace_all(seed_vehicles())
