"""Admin tool implementations — save, delete, sheet import, and sync status."""

from __future__ import annotations

from typing import Any

from storefront_mcp.clients.sheets import SHARED_SHEET_CACHE, SheetCsvClient
from storefront_mcp.data.inventory import get_config, get_controller
from storefront_mcp.ingestion.pipeline import vehicle_from_form
from storefront_mcp.tools.responses import build_tool_response


async def save_vehicle_impl(vehicle: Any) -> str:
    """Create or replace one vehicle. A missing id creates a new listing."""
    if not isinstance(vehicle, dict):
        return "Error: vehicle payload must be a dict."

    controller = get_controller()
    canonical = vehicle_from_form(vehicle)
    existed = controller.store.get(canonical["id"]) is not None
    saved = await controller.save_vehicle(canonical)
    if saved is None:
        return f"Error: {controller.status.message}"

    action = "updated" if existed else "created"
    return build_tool_response(
        "save_vehicle",
        {"action": action, "vehicle": saved, "total_vehicles": controller.store.count()},
    )


async def delete_vehicle_impl(vehicle_id: str) -> str:
    """Remove one vehicle by id. Deleting an unknown id is not an error."""
    if not vehicle_id or not str(vehicle_id).strip():
        return "Error: vehicle_id is required."

    controller = get_controller()
    key = str(vehicle_id).strip()
    existed = controller.store.get(key) is not None
    if not await controller.delete_vehicle(key):
        return f"Error: {controller.status.message}"
    if existed:
        return f"Vehicle {key} removed successfully."
    return f"Vehicle {key} was not in the inventory; nothing to remove."


async def import_from_sheet_impl(url: str = "", *, refresh: bool = True) -> str:
    """Replace the inventory with the rows of a published spreadsheet.

    Explicit imports fetch the sheet again unless ``refresh`` is False, in
    which case a copy fetched within the last minute may be reused.
    """
    config = get_config()
    target = url.strip() or config.sheet_csv_url
    if not target:
        return "Error: no spreadsheet URL given and SHEET_CSV_URL is not set."

    controller = get_controller()
    async with SheetCsvClient(
        proxy_templates=config.sheet_proxy_templates, cache=SHARED_SHEET_CACHE,
    ) as client:
        imported = await controller.import_sheet(client, target, refresh=refresh)

    if imported == 0:
        return f"Import skipped: {controller.status.message}"
    return f"Imported {imported} vehicle(s) from the spreadsheet."


def get_sync_status_impl() -> str:
    """Current data source, loading flag, and any advisory message."""
    controller = get_controller()
    return build_tool_response(
        "get_sync_status",
        {
            **controller.status.to_dict(),
            "live": controller.live,
            "total_vehicles": controller.store.count(),
        },
    )
