"""Shared test fixtures — isolated seeded store/controller, config, cache clearing."""

from __future__ import annotations

import pytest

from storefront_mcp.clients.sheets import SHARED_SHEET_CACHE
from storefront_mcp.config import StorefrontConfig
from storefront_mcp.data.inventory import set_config, set_controller, set_store
from storefront_mcp.data.seed import seed_demo_data
from storefront_mcp.data.store import InMemoryVehicleStore
from storefront_mcp.ingestion.pipeline import InventoryController


class FakeSink:
    """Admin sink double that records calls and can be told to fail."""

    def __init__(self) -> None:
        self.saved: list[dict] = []
        self.deleted: list[str] = []
        self.fail_with: Exception | None = None

    async def save(self, vehicle):
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append(dict(vehicle))

    async def delete(self, vehicle_id):
        if self.fail_with is not None:
            raise self.fail_with
        self.deleted.append(vehicle_id)


class FakeListener:
    """Live source double; tests push deliveries through the stored callbacks."""

    def __init__(self) -> None:
        self.on_snapshot = None
        self.on_error = None
        self.started = 0
        self.stopped = 0

    def start(self, on_snapshot, on_error):
        self.started += 1
        self.on_snapshot = on_snapshot
        self.on_error = on_error

    async def stop(self):
        self.stopped += 1


@pytest.fixture()
def fake_sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def make_listener():
    """Factory for fresh listener doubles."""
    return FakeListener


@pytest.fixture()
def store() -> InMemoryVehicleStore:
    """The seeded store injected for the current test."""
    from storefront_mcp.data.inventory import get_store

    return get_store()


@pytest.fixture()
def controller() -> InventoryController:
    from storefront_mcp.data.inventory import get_controller

    return get_controller()


@pytest.fixture(autouse=True)
def _inject_test_store():
    """Give every test a fresh, isolated, seeded in-memory store and controller."""
    store = InMemoryVehicleStore()
    seed_demo_data(store)
    set_store(store)
    set_controller(InventoryController(store))
    set_config(StorefrontConfig(sheet_proxy_templates=()))
    yield
    set_store(None)
    set_controller(None)
    set_config(None)


@pytest.fixture(autouse=True)
def _clear_sheet_cache():
    """Clear the shared sheet cache so fetches never leak between tests."""
    SHARED_SHEET_CACHE.clear()
    yield
    SHARED_SHEET_CACHE.clear()
