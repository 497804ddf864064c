"""Inventory search and filter-option tool implementations."""

from __future__ import annotations

from typing import Any

from storefront_mcp.catalog import FilterSpec
from storefront_mcp.data.inventory import get_controller
from storefront_mcp.tools.responses import build_tool_response

_LISTING_FIELDS = (
    "id", "brand", "model", "year", "price", "mileage",
    "fuelType", "transmission", "location",
)


def _listing_summary(vehicle: dict[str, Any]) -> dict[str, Any]:
    summary = {field: vehicle[field] for field in _LISTING_FIELDS}
    summary["thumbnail"] = vehicle["images"][0] if vehicle["images"] else ""
    return summary


def search_inventory_impl(
    *,
    brand: str = "all",
    year: str | int = "all",
    model: str = "",
    price: str = "all",
    search: str = "",
) -> str:
    """Filter the held inventory and return matching listings in display order."""
    spec = FilterSpec.from_mapping(
        {"brand": brand, "year": year, "model": model, "price": price, "search": search},
    )
    controller = get_controller()
    matches = controller.filter(spec)

    data: dict[str, Any] = {
        "filters": {
            "brand": spec.brand,
            "year": spec.year,
            "model": spec.model,
            "price": spec.price,
            "search": spec.search,
        },
        "total_vehicles": controller.store.count(),
        "total_matches": len(matches),
        "vehicles": [_listing_summary(v) for v in matches],
        "status": controller.status.to_dict(),
    }
    if not matches:
        data["empty_message"] = "No vehicles match these filters. Try changing or clearing them."
    return build_tool_response("search_inventory", data)


def get_filter_options_impl() -> str:
    """Brand, year, and price-range options derived from the current inventory."""
    return build_tool_response("get_filter_options", get_controller().facets())
