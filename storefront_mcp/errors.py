"""Error taxonomy for inventory sources and the admin action sink."""

from __future__ import annotations

from typing import Any


class InventoryError(RuntimeError):
    """Base error for external inventory collaborators, with structured metadata."""

    default_code = "INVENTORY_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.status = status
        self.details = details or {}


class SourceUnavailable(InventoryError):
    """The live collection or spreadsheet source could not be reached."""

    default_code = "SOURCE_UNAVAILABLE"


class ParseMalformed(InventoryError):
    """The spreadsheet export was fetched but is not usable tabular data."""

    default_code = "PARSE_MALFORMED"


class SinkFailure(InventoryError):
    """The backing store rejected an admin save or delete."""

    default_code = "SINK_FAILURE"
