"""Async client for a published spreadsheet exported as CSV.

Published Google Sheets do not send CORS headers, so the storefront has
historically read them through public relay proxies. The client tries the
direct URL first and then each configured proxy template in order.
"""

from __future__ import annotations

import csv
import io
import logging
import time
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import aiohttp

from storefront_mcp.errors import ParseMalformed, SourceUnavailable

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=15)
_CACHE_TTL_SECONDS = 60


class _TTLCache:
    """Simple in-memory cache with per-entry TTL."""

    def __init__(self, ttl: int = _CACHE_TTL_SECONDS) -> None:
        self._store: dict[str, tuple[float, Any]] = {}
        self._ttl = ttl

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        ts, value = entry
        if time.monotonic() - ts > self._ttl:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = (time.monotonic(), value)

    def clear(self) -> None:
        self._store.clear()


SHARED_SHEET_CACHE = _TTLCache()


def build_candidate_urls(url: str, proxy_templates: Sequence[str] = ()) -> list[str]:
    """Direct URL first, then each proxy template with the URL percent-encoded."""
    encoded = quote(url, safe="")
    candidates = [url]
    for template in proxy_templates:
        candidate = template.replace("{url}", encoded)
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


def _looks_like_html(text: str) -> bool:
    head = text.lstrip()[:256].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse CSV text into header-keyed rows.

    Raises :class:`ParseMalformed` when the body is not tabular data at all;
    individual odd cells are left for the normalizer to default.
    """
    if not text or not text.strip():
        raise ParseMalformed("Spreadsheet export is empty.")
    if _looks_like_html(text):
        raise ParseMalformed(
            "Spreadsheet export returned an HTML page; is the sheet published as CSV?",
        )

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), strict=True)
    try:
        header = next(reader, None)
        if header is None or not any(cell.strip() for cell in header):
            raise ParseMalformed("Spreadsheet export has no header row.")
        columns = [cell.strip() for cell in header]

        rows: list[dict[str, str]] = []
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            row = {
                name: (cells[index] if index < len(cells) else "")
                for index, name in enumerate(columns)
                if name
            }
            rows.append(row)
    except csv.Error as exc:
        raise ParseMalformed(
            f"Spreadsheet export is not valid CSV: {exc}",
            details={"line": reader.line_num},
        ) from exc
    return rows


def decode_csv_body(body: bytes, *, source: str = "") -> str:
    """Decode an export body as UTF-8, dropping a leading byte-order mark."""
    try:
        return body.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseMalformed(
            "Spreadsheet export is not valid UTF-8 text.",
            details={"url": source, "position": exc.start},
        ) from exc


class SheetCsvClient:
    """Async client that fetches a published sheet's CSV export."""

    def __init__(
        self,
        *,
        proxy_templates: Sequence[str] = (),
        cache: _TTLCache | None = None,
    ) -> None:
        self.proxy_templates = tuple(proxy_templates)
        self.session: aiohttp.ClientSession | None = None
        self._cache = cache or _TTLCache()

    async def __aenter__(self) -> SheetCsvClient:
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self.session:
            await self.session.close()

    async def _get_body(self, url: str) -> tuple[int, bytes]:
        if not self.session:
            raise RuntimeError("Client not entered as context manager")
        async with self.session.get(url, timeout=_REQUEST_TIMEOUT) as resp:
            return resp.status, await resp.read()

    async def fetch_csv(self, url: str, *, refresh: bool = False) -> str:
        """Fetch CSV text, falling back through the proxy chain on failure.

        ``refresh`` skips the cached copy; the fresh body is still cached.
        """
        if not url.strip():
            raise SourceUnavailable(
                "No spreadsheet URL is configured.",
                code="MISSING_SHEET_URL",
            )

        cached = None if refresh else self._cache.get(url)
        if cached is not None:
            return cached

        failures: list[dict[str, Any]] = []
        for candidate in build_candidate_urls(url, self.proxy_templates):
            try:
                status, body = await self._get_body(candidate)
            except (aiohttp.ClientError, TimeoutError) as exc:
                logger.warning("Sheet fetch failed via %s: %s", candidate, exc)
                failures.append({"url": candidate, "error": str(exc) or type(exc).__name__})
                continue
            if status >= 400:
                logger.warning("Sheet fetch via %s returned HTTP %s", candidate, status)
                failures.append({"url": candidate, "status": status})
                continue
            text = decode_csv_body(body, source=candidate)
            self._cache.set(url, text)
            return text

        logger.error("Sheet fetch failed on all %d candidate URL(s)", len(failures))
        raise SourceUnavailable(
            "Spreadsheet source is unreachable.",
            details={"attempts": failures},
        )

    async def fetch_rows(self, url: str, *, refresh: bool = False) -> list[dict[str, str]]:
        """Fetch the sheet and parse it into header-keyed rows."""
        return parse_csv(await self.fetch_csv(url, refresh=refresh))
