"""Async Firestore REST client, polling listener, and admin action sink.

The live collection source is modelled as a poller: every interval the
whole collection is listed and, when it differs from the last delivery,
pushed to the subscriber as one complete batch.
"""

from __future__ import annotations

import asyncio
import base64
import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote

import aiohttp

from storefront_mcp.errors import SinkFailure, SourceUnavailable

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=10)
_PAGE_SIZE = 300

Document = tuple[str, dict[str, Any]]
SnapshotCallback = Callable[[list[Document]], Any]
ErrorCallback = Callable[[str], Any]


# ── Typed value codec ───────────────────────────────────────────────


def decode_value(value: Mapping[str, Any]) -> Any:
    """Convert one Firestore REST typed value into a plain Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        try:
            return int(value["integerValue"])
        except (TypeError, ValueError):
            return None
    if "doubleValue" in value:
        try:
            return float(value["doubleValue"])
        except (TypeError, ValueError):
            return None
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    return None


def decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {name: decode_value(v) for name, v in fields.items()}


def encode_value(value: Any) -> dict[str, Any]:
    """Convert a plain Python value into a Firestore REST typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    return {"stringValue": str(value)}


def encode_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    return {str(name): encode_value(v) for name, v in data.items()}


def decode_document(document: Mapping[str, Any]) -> Document:
    """Return ``(doc_id, fields)`` for a REST document resource."""
    name = str(document.get("name", ""))
    doc_id = name.rsplit("/", 1)[-1]
    return doc_id, decode_fields(document.get("fields", {}))


# ── Client ──────────────────────────────────────────────────────────


class FirestoreClient:
    """Async client for the Firestore REST API (documents endpoint)."""

    BASE_URL = "https://firestore.googleapis.com/v1"

    def __init__(
        self,
        project_id: str,
        *,
        api_key: str = "",
        database: str = "(default)",
    ) -> None:
        self.project_id = project_id.strip()
        self.api_key = api_key.strip()
        self.database = database
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> FirestoreClient:
        if not self.project_id:
            raise SourceUnavailable(
                "FIRESTORE_PROJECT_ID is not configured.",
                code="MISSING_PROJECT_ID",
            )
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self.session:
            await self.session.close()

    def _collection_url(self, collection: str) -> str:
        return (
            f"{self.BASE_URL}/projects/{self.project_id}/databases/{self.database}"
            f"/documents/{quote(collection, safe='')}"
        )

    def _document_url(self, collection: str, doc_id: str) -> str:
        return f"{self._collection_url(collection)}/{quote(str(doc_id), safe='')}"

    def _params(self, extra: list[tuple[str, str]] | None = None) -> list[tuple[str, str]]:
        params = list(extra or [])
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> tuple[int, Any]:
        if not self.session:
            raise RuntimeError("Client not entered as context manager")
        async with self.session.request(
            method,
            url,
            params=self._params(params),
            json=json_body,
            timeout=_REQUEST_TIMEOUT,
        ) as resp:
            try:
                payload = await resp.json(content_type=None)
            except ValueError:
                payload = {}
            return resp.status, payload

    @staticmethod
    def _error_message(status: int, payload: Any) -> str:
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            message = payload["error"].get("message")
            if message:
                return str(message)
        return f"Firestore request failed with HTTP {status}."

    async def list_documents(self, collection: str) -> list[Document]:
        """List every document in *collection*, following pagination."""
        documents: list[Document] = []
        page_token = ""
        while True:
            extra = [("pageSize", str(_PAGE_SIZE))]
            if page_token:
                extra.append(("pageToken", page_token))
            try:
                status, payload = await self._request(
                    "GET", self._collection_url(collection), params=extra,
                )
            except (aiohttp.ClientError, TimeoutError) as exc:
                logger.error("Firestore list error (%s): %s", collection, exc)
                raise SourceUnavailable(
                    "Firestore request failed due to a network/client error.",
                    details={"collection": collection, "error": str(exc)},
                ) from exc
            if status >= 400:
                raise SourceUnavailable(
                    self._error_message(status, payload),
                    status=status,
                    details={"collection": collection},
                )
            if not isinstance(payload, dict):
                break
            for raw in payload.get("documents", []):
                if isinstance(raw, dict):
                    documents.append(decode_document(raw))
            page_token = str(payload.get("nextPageToken") or "")
            if not page_token:
                break
        return documents

    async def set_document(
        self, collection: str, doc_id: str, data: Mapping[str, Any],
    ) -> None:
        """Write *data* into the document, merging with any existing fields."""
        mask = [("updateMask.fieldPaths", str(name)) for name in data]
        try:
            status, payload = await self._request(
                "PATCH",
                self._document_url(collection, doc_id),
                params=mask,
                json_body={"fields": encode_fields(data)},
            )
        except (aiohttp.ClientError, TimeoutError) as exc:
            logger.error("Firestore write error (%s/%s): %s", collection, doc_id, exc)
            raise SinkFailure(
                "Firestore write failed due to a network/client error.",
                details={"doc_id": doc_id, "error": str(exc)},
            ) from exc
        if status >= 400:
            raise SinkFailure(
                self._error_message(status, payload),
                status=status,
                details={"doc_id": doc_id},
            )

    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document. A document that is already gone is not an error."""
        try:
            status, payload = await self._request(
                "DELETE", self._document_url(collection, doc_id),
            )
        except (aiohttp.ClientError, TimeoutError) as exc:
            logger.error("Firestore delete error (%s/%s): %s", collection, doc_id, exc)
            raise SinkFailure(
                "Firestore delete failed due to a network/client error.",
                details={"doc_id": doc_id, "error": str(exc)},
            ) from exc
        if status >= 400 and status != 404:
            raise SinkFailure(
                self._error_message(status, payload),
                status=status,
                details={"doc_id": doc_id},
            )


# ── Live source ─────────────────────────────────────────────────────


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class FirestoreListener:
    """Push-style subscription over a polled Firestore collection."""

    def __init__(
        self,
        client_factory: Callable[[], FirestoreClient],
        collection: str,
        *,
        poll_interval: float = 5.0,
    ) -> None:
        self._client_factory = client_factory
        self.collection = collection
        self.poll_interval = poll_interval
        self._task: asyncio.Task[None] | None = None
        self._stopped = False
        self._last_delivery: list[Document] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> None:
        if self.running:
            return
        self._stopped = False
        self._last_delivery = None
        self._task = asyncio.get_running_loop().create_task(
            self._run(on_snapshot, on_error),
        )

    async def stop(self) -> None:
        """Tear down the subscription; nothing is delivered after this returns."""
        self._stopped = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def poll_once(
        self,
        client: FirestoreClient,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Run one poll. Failures are reported through ``on_error``, never raised."""
        try:
            documents = await client.list_documents(self.collection)
        except SourceUnavailable as exc:
            await self._report(on_error, str(exc))
            return
        except Exception as exc:
            logger.exception("Firestore poll of %s failed", self.collection)
            await self._report(on_error, f"Unreadable live collection response: {exc}")
            return
        if self._stopped or documents == self._last_delivery:
            return
        self._last_delivery = documents
        try:
            await _maybe_await(on_snapshot(documents))
        except Exception as exc:
            logger.exception("Snapshot delivery for %s failed", self.collection)
            # Redeliver on the next poll.
            self._last_delivery = None
            await self._report(on_error, f"Live snapshot could not be applied: {exc}")

    async def _report(self, on_error: ErrorCallback, message: str) -> None:
        if self._stopped:
            return
        try:
            await _maybe_await(on_error(message))
        except Exception:
            logger.exception("Error callback for %s failed", self.collection)

    async def _run(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> None:
        try:
            async with self._client_factory() as client:
                while not self._stopped:
                    await self.poll_once(client, on_snapshot, on_error)
                    await asyncio.sleep(self.poll_interval)
        except SourceUnavailable as exc:
            logger.error("Firestore listener could not start: %s", exc)
            await self._report(on_error, str(exc))
        except Exception as exc:
            logger.exception("Firestore listener for %s stopped", self.collection)
            await self._report(on_error, f"Live collection listener stopped: {exc}")


# ── Admin sink ──────────────────────────────────────────────────────


class FirestoreSink:
    """Admin action sink writing to a Firestore collection."""

    def __init__(
        self, client_factory: Callable[[], FirestoreClient], collection: str,
    ) -> None:
        self._client_factory = client_factory
        self.collection = collection

    async def save(self, vehicle: Mapping[str, Any]) -> None:
        try:
            async with self._client_factory() as client:
                await client.set_document(self.collection, str(vehicle["id"]), vehicle)
        except SourceUnavailable as exc:
            raise SinkFailure(str(exc), code=exc.code) from exc

    async def delete(self, vehicle_id: str) -> None:
        try:
            async with self._client_factory() as client:
                await client.delete_document(self.collection, str(vehicle_id))
        except SourceUnavailable as exc:
            raise SinkFailure(str(exc), code=exc.code) from exc
