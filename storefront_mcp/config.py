"""Runtime configuration for the storefront, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DATA_SOURCES = ("seed", "firestore", "sheet")

DEFAULT_PROXY_TEMPLATES = (
    "https://api.allorigins.win/raw?url={url}",
    "https://corsproxy.io/?{url}",
)

_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


def load_env_file(path: Path = _ENV_FILE) -> None:
    """Load ``KEY=VALUE`` lines from a project-root ``.env`` (no extra dependency)."""
    if not path.is_file():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            os.environ.setdefault(k.strip(), v.strip())


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _as_float(raw: str | None, default: float) -> float:
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass
class StorefrontConfig:
    """Which inventory source is active and how to reach it."""
    data_source: str = "seed"
    firestore_project_id: str = ""
    firestore_api_key: str = ""
    firestore_collection: str = "vehicles"
    firestore_poll_seconds: float = 5.0
    sheet_csv_url: str = ""
    sheet_proxy_templates: tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_PROXY_TEMPLATES,
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> StorefrontConfig:
        data_source = os.environ.get("STOREFRONT_DATA_SOURCE", "seed").strip().lower()
        if data_source not in DATA_SOURCES:
            raise ValueError(
                f"STOREFRONT_DATA_SOURCE must be one of {', '.join(DATA_SOURCES)}, "
                f"got '{data_source}'"
            )
        proxies = os.environ.get("SHEET_PROXY_TEMPLATES")
        return cls(
            data_source=data_source,
            firestore_project_id=os.environ.get("FIRESTORE_PROJECT_ID", "").strip(),
            firestore_api_key=os.environ.get("FIRESTORE_API_KEY", "").strip(),
            firestore_collection=(
                os.environ.get("FIRESTORE_COLLECTION", "").strip() or "vehicles"
            ),
            firestore_poll_seconds=_as_float(os.environ.get("FIRESTORE_POLL_SECONDS"), 5.0),
            sheet_csv_url=os.environ.get("SHEET_CSV_URL", "").strip(),
            sheet_proxy_templates=(
                _split_csv(proxies) if proxies is not None else DEFAULT_PROXY_TEMPLATES
            ),
            log_level=os.environ.get("STOREFRONT_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
