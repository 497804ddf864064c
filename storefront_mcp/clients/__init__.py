"""Shared external source clients."""

from storefront_mcp.clients.firestore import (
    FirestoreClient,
    FirestoreListener,
    FirestoreSink,
)
from storefront_mcp.clients.sheets import SHARED_SHEET_CACHE, SheetCsvClient

__all__ = [
    "FirestoreClient",
    "FirestoreListener",
    "FirestoreSink",
    "SHARED_SHEET_CACHE",
    "SheetCsvClient",
]
