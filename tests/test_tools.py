"""Tool implementation tests — search, details, contact, and admin actions."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from storefront_mcp.clients.sheets import SheetCsvClient
from storefront_mcp.config import StorefrontConfig
from storefront_mcp.data.inventory import set_config, set_controller
from storefront_mcp.errors import SinkFailure, SourceUnavailable
from storefront_mcp.ingestion.pipeline import (
    SAVE_FAILED_MESSAGE,
    SHEET_UNAVAILABLE_MESSAGE,
    InventoryController,
)
from storefront_mcp.tools.admin import (
    delete_vehicle_impl,
    get_sync_status_impl,
    import_from_sheet_impl,
    save_vehicle_impl,
)
from storefront_mcp.tools.details import get_contact_link_impl, get_vehicle_details_impl
from storefront_mcp.tools.search import get_filter_options_impl, search_inventory_impl


def _data(result: str) -> dict:
    payload = json.loads(result)
    assert "_meta" in payload
    return payload["data"]


def _mock_sheet_client(mock_client, *, rows=None, error=None) -> AsyncMock:
    instance = AsyncMock()
    instance.__aenter__ = AsyncMock(return_value=instance)
    instance.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        instance.fetch_rows = AsyncMock(side_effect=error)
    else:
        instance.fetch_rows = AsyncMock(return_value=rows or [])
    mock_client.return_value = instance
    return instance


# ── search_inventory ────────────────────────────────────────────


class TestSearchInventory:
    def test_no_filters_returns_whole_inventory(self):
        data = _data(search_inventory_impl())
        assert data["total_vehicles"] == 4
        assert data["total_matches"] == 4
        assert [v["id"] for v in data["vehicles"]] == ["1", "2", "3", "4"]
        assert "empty_message" not in data

    def test_listing_summary_has_thumbnail(self):
        vehicle = _data(search_inventory_impl(brand="Tesla"))["vehicles"][0]
        assert vehicle["thumbnail"].endswith("pexels-photo-799443.jpeg")
        assert "description" not in vehicle

    def test_price_range(self):
        data = _data(search_inventory_impl(price="15000-25000"))
        assert [v["model"] for v in data["vehicles"]] == ["Civic Hatchback"]

    def test_year_and_search_compose(self):
        data = _data(search_inventory_impl(year="2019", search="guangzhou"))
        assert [v["id"] for v in data["vehicles"]] == ["2"]
        assert data["filters"]["year"] == "2019"

    def test_blank_selects_mean_all(self):
        data = _data(search_inventory_impl(brand="", year="", price=""))
        assert data["filters"]["brand"] == "all"
        assert data["total_matches"] == 4

    def test_no_match_carries_empty_message(self):
        data = _data(search_inventory_impl(brand="Lamborghini"))
        assert data["vehicles"] == []
        assert data["total_matches"] == 0
        assert "no vehicles match" in data["empty_message"].lower()


class TestFilterOptions:
    def test_facets_follow_inventory(self):
        data = _data(get_filter_options_impl())
        assert data["brands"] == ["Toyota", "BMW", "Tesla", "Honda"]
        assert data["years"] == [2021, 2020, 2019, 2018]
        assert [r["value"] for r in data["price_ranges"]] == [
            "all",
            "0-15000",
            "15000-25000",
            "25000-1000000",
        ]

    async def test_facets_update_after_delete(self):
        await delete_vehicle_impl("3")
        data = _data(get_filter_options_impl())
        assert "Tesla" not in data["brands"]
        assert 2021 not in data["years"]


# ── get_vehicle_details / get_contact_link ──────────────────────


class TestVehicleDetails:
    def test_found(self):
        data = _data(get_vehicle_details_impl(vehicle_id="3"))
        assert data["vehicle"]["model"] == "Model 3 Long Range"
        assert len(data["vehicle"]["images"]) == 3
        assert data["contact_link"].startswith(
            "https://wa.me/85251234567?text=Hello%2C%20I'd%20like%20to%20book%20a%20viewing",
        )

    def test_not_found(self):
        result = get_vehicle_details_impl(vehicle_id="NOPE")
        assert "not found" in result.lower()


class TestContactLink:
    def test_inquiry_link(self):
        data = _data(get_contact_link_impl(vehicle_id="1"))
        assert data["purpose"] == "inquiry"
        assert data["url"].startswith("https://wa.me/8613912345678?text=Hello%2C%20I'm")

    def test_invalid_purpose(self):
        result = get_contact_link_impl(vehicle_id="1", purpose="negotiate")
        assert result.startswith("Error: invalid purpose")

    def test_unknown_vehicle(self):
        assert "not found" in get_contact_link_impl(vehicle_id="999").lower()


# ── admin actions ───────────────────────────────────────────────


class TestSaveVehicle:
    async def test_create_without_id(self):
        data = _data(await save_vehicle_impl({"Brand": "Perodua", "Model": "Bezza"}))
        assert data["action"] == "created"
        assert data["vehicle"]["brand"] == "Perodua"
        assert data["total_vehicles"] == 5

    async def test_update_existing_id(self):
        data = _data(
            await save_vehicle_impl(
                {"id": "1", "brand": "Toyota", "model": "RAV4 Adventure", "price": "25,500"},
            ),
        )
        assert data["action"] == "updated"
        assert data["vehicle"]["price"] == 25500.0
        assert data["total_vehicles"] == 4

    @pytest.mark.parametrize("id_key", ["ID", "Id"])
    async def test_update_through_id_alias(self, id_key):
        data = _data(await save_vehicle_impl({id_key: "1", "Brand": "Toyota", "Model": "RAV4"}))
        assert data["action"] == "updated"
        assert data["vehicle"]["id"] == "1"
        assert data["total_vehicles"] == 4

    async def test_rejects_non_dict(self):
        assert await save_vehicle_impl(["brand", "Kia"]) == (
            "Error: vehicle payload must be a dict."
        )

    async def test_sink_failure_is_reported(self, store, fake_sink):
        fake_sink.fail_with = SinkFailure("denied")
        set_controller(InventoryController(store, sink=fake_sink))
        result = await save_vehicle_impl({"id": "9", "brand": "Kia"})
        assert result == f"Error: {SAVE_FAILED_MESSAGE}"
        assert store.get("9") is None


class TestDeleteVehicle:
    async def test_delete_existing(self, store):
        assert await delete_vehicle_impl("2") == "Vehicle 2 removed successfully."
        assert store.get("2") is None

    async def test_delete_twice_is_a_no_op(self, store):
        await delete_vehicle_impl("2")
        result = await delete_vehicle_impl("2")
        assert "nothing to remove" in result
        assert store.count() == 3

    async def test_blank_id(self):
        assert (await delete_vehicle_impl("  ")).startswith("Error:")


class TestImportFromSheet:
    async def test_missing_url(self):
        result = await import_from_sheet_impl()
        assert result.startswith("Error:")
        assert "SHEET_CSV_URL" in result

    async def test_imports_rows(self, store):
        with patch("storefront_mcp.tools.admin.SheetCsvClient") as mock_client:
            instance = _mock_sheet_client(
                mock_client,
                rows=[
                    {"ID": "s1", "Brand": "Proton", "Model": "Saga"},
                    {"ID": "s2", "Brand": "Proton", "Model": "Persona"},
                ],
            )
            result = await import_from_sheet_impl("https://sheet.example/pub?output=csv")

        assert result == "Imported 2 vehicle(s) from the spreadsheet."
        assert [v["id"] for v in store.snapshot()] == ["s1", "s2"]
        instance.fetch_rows.assert_called_once_with(
            "https://sheet.example/pub?output=csv", refresh=True,
        )

    async def test_uses_configured_url_and_proxies(self):
        set_config(
            StorefrontConfig(
                sheet_csv_url="https://configured.example/csv",
                sheet_proxy_templates=("https://relay.example/?{url}",),
            ),
        )
        with patch("storefront_mcp.tools.admin.SheetCsvClient") as mock_client:
            instance = _mock_sheet_client(mock_client, rows=[{"Brand": "Kia"}])
            await import_from_sheet_impl()

        instance.fetch_rows.assert_called_once_with("https://configured.example/csv", refresh=True)
        assert mock_client.call_args.kwargs["proxy_templates"] == (
            "https://relay.example/?{url}",
        )

    async def test_reimport_sees_sheet_edits(self, store):
        bodies = [(200, b"ID,Brand\nk1,Kia\n"), (200, b"ID,Brand\np1,Proton\n")]
        with patch.object(SheetCsvClient, "_get_body", AsyncMock(side_effect=bodies)):
            await import_from_sheet_impl("https://sheet.example/csv")
            await import_from_sheet_impl("https://sheet.example/csv")

        assert [v["brand"] for v in store.snapshot()] == ["Proton"]

    async def test_cached_copy_only_when_refresh_is_off(self):
        with patch("storefront_mcp.tools.admin.SheetCsvClient") as mock_client:
            instance = _mock_sheet_client(mock_client, rows=[{"Brand": "Kia"}])
            await import_from_sheet_impl("https://sheet.example/csv", refresh=False)

        instance.fetch_rows.assert_called_once_with("https://sheet.example/csv", refresh=False)

    async def test_unreachable_sheet_keeps_inventory(self, store):
        with patch("storefront_mcp.tools.admin.SheetCsvClient") as mock_client:
            _mock_sheet_client(mock_client, error=SourceUnavailable("down"))
            result = await import_from_sheet_impl("https://sheet.example/csv")

        assert result == f"Import skipped: {SHEET_UNAVAILABLE_MESSAGE}"
        assert store.count() == 4


class TestSyncStatus:
    def test_default_status(self):
        data = _data(get_sync_status_impl())
        assert data["source"] == "seed"
        assert data["live"] is False
        assert data["loading"] is False
        assert data["total_vehicles"] == 4

    async def test_status_reflects_last_failure(self):
        with patch("storefront_mcp.tools.admin.SheetCsvClient") as mock_client:
            _mock_sheet_client(mock_client, error=SourceUnavailable("down"))
            await import_from_sheet_impl("https://sheet.example/csv")

        data = _data(get_sync_status_impl())
        assert data["source"] == "sheet"
        assert data["message"] == SHEET_UNAVAILABLE_MESSAGE
