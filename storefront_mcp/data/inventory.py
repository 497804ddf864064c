"""Inventory facade — module-level access to the held collection and its controller.

Tool modules import the helpers below instead of reaching for the store or
controller directly, so tests can swap either with ``set_store`` /
``set_controller``.
"""

from __future__ import annotations

from typing import Any

from storefront_mcp.catalog import FilterSpec
from storefront_mcp.clients.firestore import FirestoreClient, FirestoreListener, FirestoreSink
from storefront_mcp.config import StorefrontConfig
from storefront_mcp.data.store import InMemoryVehicleStore, VehicleStore
from storefront_mcp.ingestion.pipeline import InventoryController

_store: VehicleStore | None = None
_controller: InventoryController | None = None
_config: StorefrontConfig | None = None


def get_config() -> StorefrontConfig:
    global _config  # noqa: PLW0603
    if _config is None:
        _config = StorefrontConfig.from_env()
    return _config


def set_config(config: StorefrontConfig | None) -> None:
    global _config  # noqa: PLW0603
    _config = config


def get_store() -> VehicleStore:
    """Return the active VehicleStore singleton, creating + seeding if needed."""
    global _store  # noqa: PLW0603
    if _store is None:
        from storefront_mcp.data.seed import seed_demo_data

        store = InMemoryVehicleStore()
        seed_demo_data(store)
        _store = store
    return _store


def set_store(store: VehicleStore | None) -> None:
    """Inject a store instance for testing. Drops any controller bound to the old one."""
    global _store, _controller  # noqa: PLW0603
    _store = store
    _controller = None


def _firestore_factory(config: StorefrontConfig):
    def factory() -> FirestoreClient:
        return FirestoreClient(
            config.firestore_project_id, api_key=config.firestore_api_key,
        )
    return factory


def build_controller(
    config: StorefrontConfig, store: VehicleStore | None = None,
) -> InventoryController:
    """Wire a controller for the configured data source (listener not started)."""
    target = store or get_store()
    if config.data_source == "firestore":
        sink = FirestoreSink(_firestore_factory(config), config.firestore_collection)
        return InventoryController(target, sink=sink)
    return InventoryController(target)


def build_listener(config: StorefrontConfig) -> FirestoreListener | None:
    if config.data_source != "firestore":
        return None
    return FirestoreListener(
        _firestore_factory(config),
        config.firestore_collection,
        poll_interval=config.firestore_poll_seconds,
    )


def get_controller() -> InventoryController:
    """Return the controller singleton bound to the active store."""
    global _controller  # noqa: PLW0603
    if _controller is None:
        _controller = build_controller(get_config(), get_store())
    return _controller


def set_controller(controller: InventoryController | None) -> None:
    """Inject a controller for testing."""
    global _controller  # noqa: PLW0603
    _controller = controller


# ── Public helpers ──────────────────────────────────────────────────


def get_vehicle(vehicle_id: str) -> dict[str, Any] | None:
    """Look up a single vehicle by ID. Returns None if not found."""
    return get_store().get(vehicle_id)


def list_vehicles() -> list[dict[str, Any]]:
    """Snapshot of the whole collection in display order."""
    return get_store().snapshot()


def search_inventory(spec: FilterSpec | None = None) -> list[dict[str, Any]]:
    """Vehicles matching every active filter, in collection order."""
    return get_controller().filter(spec)


def get_filter_facets() -> dict[str, Any]:
    """Brand/year/price options derived from the current collection."""
    return get_controller().facets()
