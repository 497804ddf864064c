"""Used-car storefront MCP server — FastMCP entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from storefront_mcp.config import load_env_file
from storefront_mcp.data.inventory import build_listener, get_config, get_controller
from storefront_mcp.tools.admin import (
    delete_vehicle_impl,
    get_sync_status_impl,
    import_from_sheet_impl,
    save_vehicle_impl,
)
from storefront_mcp.tools.details import get_contact_link_impl, get_vehicle_details_impl
from storefront_mcp.tools.responses import (
    log_and_return_tool_error as _log_and_return_tool_error,
)
from storefront_mcp.tools.search import get_filter_options_impl, search_inventory_impl

load_env_file()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_server: FastMCP) -> AsyncIterator[None]:
    """Start the configured inventory source and tear it down on shutdown."""
    config = get_config()
    controller = get_controller()
    listener = build_listener(config)
    if listener is not None:
        controller.attach_listener(listener)
    elif config.data_source == "sheet" and config.sheet_csv_url:
        logger.info("Importing inventory from %s", config.sheet_csv_url)
        try:
            logger.info(await import_from_sheet_impl(config.sheet_csv_url))
        except Exception:
            logger.exception("Startup spreadsheet import failed; serving the seed inventory")
    try:
        yield
    finally:
        await controller.detach_listener()


mcp = FastMCP("UsedCar", lifespan=_lifespan)


# ── Storefront tools ────────────────────────────────────────────────


@mcp.tool()
def search_inventory(
    brand: str = "all",
    year: str = "all",
    model: str = "",
    price: str = "all",
    search: str = "",
) -> str:
    """Filter vehicles by brand, year, model text, price range, and keyword.

    brand/year/price accept 'all'; price takes a range value such as
    '15000-25000'. All filters are ANDed and results keep inventory order.
    """
    try:
        return search_inventory_impl(
            brand=brand, year=year, model=model, price=price, search=search,
        )
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="search_inventory",
            exc=exc,
            user_message=(
                "I am having trouble searching the inventory right now. "
                "Please try again in a moment."
            ),
        )


@mcp.tool()
def get_filter_options() -> str:
    """List the brands, years, and price ranges available for filtering."""
    try:
        return get_filter_options_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_filter_options",
            exc=exc,
            user_message=(
                "I am having trouble loading filter options right now. "
                "Please try again in a moment."
            ),
        )


@mcp.tool()
def get_vehicle_details(vehicle_id: str) -> str:
    """Get the full listing for a vehicle by ID, including a contact link."""
    try:
        return get_vehicle_details_impl(vehicle_id=vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_vehicle_details",
            exc=exc,
            user_message=(
                "I am having trouble loading that vehicle right now. "
                "Please try again in a moment."
            ),
        )


@mcp.tool()
def get_contact_link(vehicle_id: str, purpose: str = "inquiry") -> str:
    """Build a WhatsApp link to the seller. purpose: 'inquiry' or 'viewing'."""
    try:
        return get_contact_link_impl(vehicle_id=vehicle_id, purpose=purpose)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_contact_link",
            exc=exc,
            user_message=(
                "I am having trouble building that contact link right now. "
                "Please try again in a moment."
            ),
        )


# ── Admin tools ─────────────────────────────────────────────────────


@mcp.tool()
async def save_vehicle(vehicle: dict) -> str:
    """Create or update a vehicle. Omit 'id' to create a new listing."""
    try:
        return await save_vehicle_impl(vehicle)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="save_vehicle",
            exc=exc,
            user_message=(
                "I am having trouble saving that vehicle right now. "
                "Please try again in a moment."
            ),
        )


@mcp.tool()
async def delete_vehicle(vehicle_id: str) -> str:
    """Remove a vehicle from the inventory by its ID."""
    try:
        return await delete_vehicle_impl(vehicle_id)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="delete_vehicle",
            exc=exc,
            user_message=(
                "I am having trouble removing that vehicle right now. "
                "Please try again in a moment."
            ),
        )


@mcp.tool()
async def import_from_sheet(url: str = "", refresh: bool = True) -> str:
    """Replace the inventory with a published spreadsheet's CSV export.

    Defaults to SHEET_CSV_URL when no url is given. Set refresh to false to
    accept a copy of the sheet fetched within the last minute.
    """
    try:
        return await import_from_sheet_impl(url, refresh=refresh)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="import_from_sheet",
            exc=exc,
            user_message=(
                "I am having trouble importing the spreadsheet right now. "
                "Please try again in a moment."
            ),
        )


@mcp.tool()
def get_sync_status() -> str:
    """Report the active data source, loading state, and any advisory message."""
    try:
        return get_sync_status_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_sync_status",
            exc=exc,
            user_message=(
                "I am having trouble reading the sync status right now. "
                "Please try again in a moment."
            ),
        )


if __name__ == "__main__":
    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()
