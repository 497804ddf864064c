"""Catalog query engine — multi-field filtering and facet derivation.

Facets are recomputed from the collection on every call; the collection
is small enough that no caching layer is kept.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from dataclasses import replace as _dataclass_replace
from typing import Any

from storefront_mcp.normalization import parse_int, parse_number

WILDCARD = "all"

PRICE_RANGES: tuple[dict[str, str], ...] = (
    {"label": "All prices", "value": WILDCARD},
    {"label": "≤ RM15,000", "value": "0-15000"},
    {"label": "RM15,000 - RM25,000", "value": "15000-25000"},
    {"label": "≥ RM25,000", "value": "25000-1000000"},
)


@dataclass(frozen=True)
class FilterSpec:
    """Current filter selection. Replaced wholesale on every change."""
    brand: str = WILDCARD
    year: str | int = WILDCARD
    model: str = ""
    price: str = WILDCARD
    search: str = ""

    @classmethod
    def reset(cls) -> FilterSpec:
        return cls()

    def replace(self, **changes: Any) -> FilterSpec:
        return _dataclass_replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> FilterSpec:
        """Build a spec from loose input; blank selects become wildcards."""
        if not values:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in values.items():
            if name not in known or value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
            if name in {"brand", "year", "price"} and value == "":
                value = WILDCARD
            kwargs[name] = value if name == "year" else str(value)
        return cls(**kwargs)

    def is_wildcard(self) -> bool:
        return self == FilterSpec()


def parse_price_range(value: str) -> tuple[float, float] | None:
    """Parse an inclusive ``"min-max"`` range. Returns ``None`` when malformed."""
    low, sep, high = str(value).strip().partition("-")
    if not sep:
        return None
    minimum = parse_number(low) if low.strip() else None
    maximum = parse_number(high) if high.strip() else None
    if minimum is None or maximum is None:
        return None
    return minimum, maximum


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


def vehicle_matches(vehicle: Mapping[str, Any], spec: FilterSpec) -> bool:
    """True when *vehicle* passes every active filter dimension."""
    if spec.brand != WILDCARD and vehicle.get("brand") != spec.brand:
        return False

    if spec.year != WILDCARD:
        year = parse_int(spec.year)
        if year is None or vehicle.get("year") != year:
            return False

    if spec.model and not _contains(str(vehicle.get("model", "")), spec.model):
        return False

    if spec.price != WILDCARD:
        bounds = parse_price_range(spec.price)
        if bounds is None:
            return False
        price = vehicle.get("price", 0)
        if not bounds[0] <= price <= bounds[1]:
            return False

    if spec.search:
        text = " ".join(
            str(vehicle.get(key, "")) for key in ("brand", "model", "location")
        )
        if not _contains(text, spec.search):
            return False

    return True


def filter_vehicles(
    vehicles: Iterable[Mapping[str, Any]], spec: FilterSpec | None = None,
) -> list[Any]:
    """Return the vehicles matching *spec*, in collection order."""
    active = spec or FilterSpec()
    return [v for v in vehicles if vehicle_matches(v, active)]


def brand_facets(vehicles: Iterable[Mapping[str, Any]]) -> list[str]:
    """Distinct brands in first-seen order."""
    return list(dict.fromkeys(v.get("brand", "") for v in vehicles))


def year_facets(vehicles: Iterable[Mapping[str, Any]]) -> list[int]:
    """Distinct years, newest first."""
    return sorted({v.get("year", 0) for v in vehicles}, reverse=True)


def build_facets(vehicles: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """All filter-control options for the current collection."""
    collection = list(vehicles)
    return {
        "brands": brand_facets(collection),
        "years": year_facets(collection),
        "price_ranges": [dict(r) for r in PRICE_RANGES],
    }
