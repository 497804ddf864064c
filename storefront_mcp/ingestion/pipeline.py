"""Storefront ingestion pipeline — source adapters plus the inventory controller.

Every source goes through :func:`storefront_mcp.normalization.normalize_vehicle`;
the adapters below only decide which records survive and how a batch is
applied to the held collection.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from storefront_mcp.catalog import FilterSpec, build_facets, filter_vehicles
from storefront_mcp.clients.sheets import SheetCsvClient
from storefront_mcp.data.seed import DEMO_VEHICLES
from storefront_mcp.data.store import VehicleStore
from storefront_mcp.errors import ParseMalformed, SinkFailure, SourceUnavailable
from storefront_mcp.normalization import normalize_batch, normalize_vehicle

logger = logging.getLogger(__name__)

EMPTY_SOURCE_MESSAGE = "The live inventory is empty; showing sample vehicles instead."
SOURCE_ERROR_MESSAGE = "Could not read the live inventory. Please try again later."
SHEET_UNAVAILABLE_MESSAGE = "Could not reach the inventory spreadsheet. Please try again later."
SHEET_MALFORMED_MESSAGE = "The inventory spreadsheet could not be read as CSV."
SHEET_EMPTY_MESSAGE = "The inventory spreadsheet has no usable rows; keeping the current list."
SAVE_FAILED_MESSAGE = "Saving the vehicle failed. Please try again later."
DELETE_FAILED_MESSAGE = "Deleting the vehicle failed. Please try again later."


# ── Adapters ────────────────────────────────────────────────────────


def vehicles_from_snapshot(
    documents: Iterable[tuple[str, Mapping[str, Any]]],
) -> list[dict[str, Any]]:
    """Normalize a live snapshot. Every document is kept."""
    return [normalize_vehicle(fields, doc_id=doc_id) for doc_id, fields in documents]


def vehicles_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Normalize spreadsheet rows, dropping rows with neither brand nor model."""
    return normalize_batch(rows)


def vehicle_from_form(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a single admin form submission."""
    return normalize_vehicle(payload)


# ── Collaborator protocols ──────────────────────────────────────────


class AdminSink(Protocol):
    """Backing store for admin create/edit/delete actions."""

    async def save(self, vehicle: Mapping[str, Any]) -> None: ...
    async def delete(self, vehicle_id: str) -> None: ...


class LiveSource(Protocol):
    """Push-style collection subscription (e.g. :class:`FirestoreListener`)."""

    def start(self, on_snapshot: Any, on_error: Any) -> None: ...
    async def stop(self) -> None: ...


@dataclass
class SyncStatus:
    """User-facing sync state."""
    source: str = "seed"
    loading: bool = False
    message: str = ""
    last_synced_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ── Controller ──────────────────────────────────────────────────────


class InventoryController:
    """Owns the held vehicle collection and applies every change to it.

    Failures from external collaborators never escape: they become the
    advisory ``status.message`` and leave the collection as it was.
    """

    def __init__(
        self,
        store: VehicleStore,
        *,
        sink: AdminSink | None = None,
        seed: Sequence[Mapping[str, Any]] = DEMO_VEHICLES,
    ) -> None:
        self.store = store
        self.sink = sink
        self._seed = tuple(seed)
        self.status = SyncStatus()
        self._listener: LiveSource | None = None
        self._generation = 0

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _seed_vehicles(self) -> list[dict[str, Any]]:
        return [normalize_vehicle(v) for v in self._seed]

    def restore_seed(self) -> None:
        self.store.replace_all(self._seed_vehicles())

    def _is_stale(self, generation: int | None) -> bool:
        return generation is not None and generation != self._generation

    # ── Reads ──────────────────────────────────────────────────────

    def vehicles(self) -> list[dict[str, Any]]:
        return self.store.snapshot()

    def filter(self, spec: FilterSpec | None = None) -> list[dict[str, Any]]:
        return filter_vehicles(self.store.snapshot(), spec)

    def facets(self) -> dict[str, Any]:
        return build_facets(self.store.snapshot())

    # ── Live source ────────────────────────────────────────────────

    @property
    def live(self) -> bool:
        return self._listener is not None

    @property
    def generation(self) -> int:
        return self._generation

    def apply_snapshot(
        self,
        documents: Iterable[tuple[str, Mapping[str, Any]]],
        *,
        generation: int | None = None,
    ) -> bool:
        """Replace the collection with a live snapshot. Returns False if ignored."""
        if self._is_stale(generation):
            logger.info("Ignoring snapshot from a torn-down subscription")
            return False

        vehicles = vehicles_from_snapshot(documents)
        if not vehicles:
            self.restore_seed()
            self.status.message = EMPTY_SOURCE_MESSAGE
        else:
            self.store.replace_all(vehicles)
            self.status.message = ""
        self.status.loading = False
        self.status.last_synced_at = self._now()
        logger.info("Applied live snapshot with %d vehicle(s)", len(vehicles))
        return True

    def handle_source_error(
        self, message: str, *, generation: int | None = None,
    ) -> bool:
        """Keep the last-known collection (seed if none) and surface *message*."""
        if self._is_stale(generation):
            return False
        logger.error("Live inventory source error: %s", message)
        if self.store.count() == 0:
            self.restore_seed()
        self.status.message = message or SOURCE_ERROR_MESSAGE
        self.status.loading = False
        return True

    def attach_listener(self, listener: LiveSource, *, source: str = "firestore") -> int:
        """Subscribe to *listener*; deliveries are tagged with a fresh generation."""
        self._generation += 1
        generation = self._generation
        self._listener = listener
        self.status.source = source
        self.status.loading = True
        listener.start(
            lambda documents: self.apply_snapshot(documents, generation=generation),
            lambda message: self.handle_source_error(message, generation=generation),
        )
        return generation

    async def detach_listener(self) -> None:
        """Tear down the subscription; any late delivery is disregarded."""
        listener, self._listener = self._listener, None
        self._generation += 1
        if listener is not None:
            await listener.stop()
        self.status.loading = False

    # ── Batch import ───────────────────────────────────────────────

    async def import_sheet(
        self, client: SheetCsvClient, url: str, *, refresh: bool = False
    ) -> int:
        """Fetch, parse, and batch-replace from a published sheet. Returns the count.

        ``refresh`` bypasses the client's cached export.
        """
        self.status.source = "sheet"
        self.status.loading = True
        try:
            rows = await client.fetch_rows(url, refresh=refresh)
        except ParseMalformed as exc:
            logger.error("Spreadsheet parse failed: %s", exc)
            self.status.message = f"{SHEET_MALFORMED_MESSAGE} ({exc})"
            return 0
        except SourceUnavailable as exc:
            logger.error("Spreadsheet fetch failed: %s", exc)
            self.status.message = SHEET_UNAVAILABLE_MESSAGE
            return 0
        finally:
            self.status.loading = False

        vehicles = vehicles_from_rows(rows)
        if not vehicles:
            if self.store.count() == 0:
                self.restore_seed()
            self.status.message = SHEET_EMPTY_MESSAGE
            return 0

        self.store.replace_all(vehicles)
        self.status.message = ""
        self.status.last_synced_at = self._now()
        logger.info(
            "Imported %d vehicle(s) from %d spreadsheet row(s)", len(vehicles), len(rows),
        )
        return len(vehicles)

    # ── Admin actions ──────────────────────────────────────────────

    async def save_vehicle(self, payload: Mapping[str, Any]) -> dict[str, Any] | None:
        """Upsert one vehicle by id. Returns the saved vehicle, or None on sink failure."""
        vehicle = vehicle_from_form(payload)
        if self.sink is not None:
            try:
                await self.sink.save(vehicle)
            except SinkFailure as exc:
                logger.error("Saving vehicle %s failed: %s", vehicle["id"], exc)
                self.status.message = SAVE_FAILED_MESSAGE
                return None
        if self.sink is None or not self.live:
            self.store.upsert(vehicle)
        self.status.message = ""
        return vehicle

    async def delete_vehicle(self, vehicle_id: str) -> bool:
        """Remove one vehicle by id. A missing id is a successful no-op."""
        key = str(vehicle_id)
        if self.sink is not None:
            try:
                await self.sink.delete(key)
            except SinkFailure as exc:
                logger.error("Deleting vehicle %s failed: %s", key, exc)
                self.status.message = DELETE_FAILED_MESSAGE
                return False
        if self.sink is None or not self.live:
            self.store.remove(key)
        self.status.message = ""
        return True
