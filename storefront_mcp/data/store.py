"""VehicleStore protocol and in-memory implementation for the held catalog."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import (
    Any,
    Protocol,
    runtime_checkable,
)

# ── Protocol ────────────────────────────────────────────────────────


@runtime_checkable
class VehicleStore(Protocol):
    """Minimal interface for the process-wide vehicle collection."""

    def snapshot(self) -> list[dict[str, Any]]: ...
    def get(self, vehicle_id: str) -> dict[str, Any] | None: ...
    def count(self) -> int: ...
    def replace_all(self, vehicles: Iterable[dict[str, Any]]) -> None: ...
    def upsert(self, vehicle: dict[str, Any]) -> bool: ...
    def remove(self, vehicle_id: str) -> bool: ...


class InMemoryVehicleStore:
    """Ordered in-memory collection keyed by vehicle ``id``.

    Writers build a new list and swap the reference, so readers holding a
    snapshot never observe a half-applied batch.
    """

    def __init__(self, vehicles: Iterable[dict[str, Any]] | None = None) -> None:
        self._vehicles: list[dict[str, Any]] = []
        if vehicles is not None:
            self.replace_all(vehicles)

    @staticmethod
    def _dedupe(vehicles: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
        # Last occurrence wins but keeps the first occurrence's position.
        ordered: dict[str, dict[str, Any]] = {}
        for vehicle in vehicles:
            stored = copy.deepcopy(vehicle)
            stored["id"] = str(stored["id"])
            ordered[stored["id"]] = stored
        return list(ordered.values())

    def snapshot(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._vehicles)

    def get(self, vehicle_id: str) -> dict[str, Any] | None:
        key = str(vehicle_id)
        for vehicle in self._vehicles:
            if vehicle["id"] == key:
                return copy.deepcopy(vehicle)
        return None

    def count(self) -> int:
        return len(self._vehicles)

    def replace_all(self, vehicles: Iterable[dict[str, Any]]) -> None:
        self._vehicles = self._dedupe(vehicles)

    def upsert(self, vehicle: dict[str, Any]) -> bool:
        """Replace the entry with the same id in place, or append. True if replaced."""
        stored = copy.deepcopy(vehicle)
        stored["id"] = str(stored["id"])
        updated = list(self._vehicles)
        for index, existing in enumerate(updated):
            if existing["id"] == stored["id"]:
                updated[index] = stored
                self._vehicles = updated
                return True
        updated.append(stored)
        self._vehicles = updated
        return False

    def remove(self, vehicle_id: str) -> bool:
        key = str(vehicle_id)
        remaining = [v for v in self._vehicles if v["id"] != key]
        if len(remaining) == len(self._vehicles):
            return False
        self._vehicles = remaining
        return True
