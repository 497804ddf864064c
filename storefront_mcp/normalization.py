"""Shared canonical normalization for vehicle records.

Single source of truth — the live snapshot adapter, the spreadsheet import
and the admin save path all funnel raw records through
:func:`normalize_vehicle`, so coercion rules cannot drift between them.
"""

from __future__ import annotations

import math
import re
import time
from collections.abc import Iterable, Mapping
from typing import Any

VEHICLE_FIELDS = (
    "id", "brand", "model", "year", "price", "mileage", "fuelType",
    "transmission", "location", "description", "images", "whatsapp",
)

UNNAMED_BRAND = "Unnamed brand"

# Ordered, case-sensitive. The first alias holding a non-blank value wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "ID", "Id"),
    "brand": ("brand", "Brand", "make", "Make"),
    "model": ("model", "Model"),
    "year": ("year", "Year"),
    "price": ("price", "Price"),
    "mileage": ("mileage", "Mileage"),
    "fuelType": ("fuelType", "FuelType", "fuel_type", "Fuel Type"),
    "transmission": ("transmission", "Transmission"),
    "location": ("location", "Location", "city", "City"),
    "description": ("description", "Description"),
    "images": ("images", "Images", "IMAGES", "image", "Image"),
    "whatsapp": ("whatsapp", "WhatsApp"),
}

_STRING_FIELDS = (
    "model", "fuelType", "transmission", "location", "description", "whatsapp",
)

_last_token = 0


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


# Currency marks sellers put in front of a price and units after a mileage.
_CURRENCY_PREFIX = re.compile(
    r"^(?:RMB|RM|MYR|HK\$|US\$|MOP\$?|CNY|USD|[$¥€£])\s*", re.IGNORECASE
)
_UNIT_SUFFIX = re.compile(r"\s*(?:km|kms|mi|miles)$", re.IGNORECASE)
_THOUSANDS = re.compile(r"(?<=\d),(?=\d)")
_NUMBER_TOKEN = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def clean_numeric_string(raw: str) -> str:
    """Strip a currency prefix, a distance unit and thousands separators.

    Returns the remaining numeric token, or ``""`` when what is left is not
    exactly one number (``"Model 3"``, ``"v2"``).
    """
    cleaned = _CURRENCY_PREFIX.sub("", raw.strip(), count=1)
    cleaned = _UNIT_SUFFIX.sub("", cleaned, count=1)
    cleaned = _THOUSANDS.sub("", cleaned)
    if _NUMBER_TOKEN.fullmatch(cleaned) is None:
        return ""
    return cleaned


def parse_number(value: Any) -> float | None:
    """Best-effort number parsing.  Returns ``None`` for unparseable input.

    Strings may carry currency prefixes or thousands separators
    (``"RM26,800"``) and mileages a unit (``"52,000 km"``). Anything else
    that is not exactly one finite number, such as ``"Model 3"``, is
    rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        cleaned = clean_numeric_string(stripped)
        if not cleaned:
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_int(value: Any) -> int | None:
    """Best-effort integer parsing.  Returns ``None`` for unparseable input."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    parsed = parse_number(value)
    if parsed is None:
        return None
    return int(parsed)


def split_images(value: Any) -> list[str]:
    """Coerce an images value into a list of trimmed, non-empty URLs."""
    if isinstance(value, (list, tuple)):
        pieces = [str(item) for item in value if item is not None]
    elif isinstance(value, str):
        pieces = value.split(",")
    else:
        return []
    return [piece.strip() for piece in pieces if piece.strip()]


def new_vehicle_id() -> str:
    """Return a millisecond timestamp token, strictly increasing per process."""
    global _last_token  # noqa: PLW0603
    token = max(int(time.time() * 1000), _last_token + 1)
    _last_token = token
    return str(token)


def resolve_field(raw: Mapping[str, Any], field: str) -> Any | None:
    """Return the first non-blank value among the accepted aliases of *field*."""
    for alias in FIELD_ALIASES[field]:
        value = raw.get(alias)
        if not _is_blank(value):
            return value
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def has_identity(raw: Any) -> bool:
    """True when a raw record names at least a brand or a model."""
    if not isinstance(raw, Mapping):
        return False
    return (
        resolve_field(raw, "brand") is not None
        or resolve_field(raw, "model") is not None
    )


def normalize_vehicle(raw: Any, *, doc_id: Any = None) -> dict[str, Any]:
    """Convert one raw record into a canonical vehicle dict.

    Never raises: unknown shapes and unparseable values fall back to the
    field defaults (empty string, ``0``, empty image list).
    """
    record: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    vehicle_id = resolve_field(record, "id")
    if vehicle_id is None and not _is_blank(doc_id):
        vehicle_id = doc_id
    if vehicle_id is None:
        vehicle_id = new_vehicle_id()

    normalized: dict[str, Any] = {
        "id": _as_text(vehicle_id),
        "brand": _as_text(resolve_field(record, "brand")) or UNNAMED_BRAND,
    }
    for field in _STRING_FIELDS:
        normalized[field] = _as_text(resolve_field(record, field))

    year = parse_int(resolve_field(record, "year"))
    price = parse_number(resolve_field(record, "price"))
    mileage = parse_int(resolve_field(record, "mileage"))
    normalized["year"] = year if year is not None else 0
    normalized["price"] = price if price is not None else 0.0
    normalized["mileage"] = mileage if mileage is not None else 0
    normalized["images"] = split_images(resolve_field(record, "images"))

    return {field: normalized[field] for field in VEHICLE_FIELDS}


def normalize_batch(rows: Iterable[Any]) -> list[dict[str, Any]]:
    """Normalize a batch of imported rows, dropping rows with neither brand nor model."""
    return [normalize_vehicle(row) for row in rows if has_identity(row)]
