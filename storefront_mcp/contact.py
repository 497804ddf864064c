"""WhatsApp contact handoff links for vehicle listings."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

WHATSAPP_BASE_URL = "https://wa.me/"

GREETING_TEMPLATES: dict[str, str] = {
    "inquiry": "Hello, I'm interested in the {brand} {model}.",
    "viewing": "Hello, I'd like to book a viewing: {brand} {model}",
}

_NON_DIGIT_RE = re.compile(r"\D")

# Characters encodeURIComponent leaves unescaped.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def whatsapp_digits(handle: Any) -> str:
    """Strip every non-digit character from a contact handle."""
    return _NON_DIGIT_RE.sub("", str(handle or ""))


def build_greeting(vehicle: Mapping[str, Any], purpose: str = "inquiry") -> str:
    template = GREETING_TEMPLATES.get(purpose)
    if template is None:
        raise ValueError(
            f"Unknown contact purpose '{purpose}'. "
            f"Must be one of: {', '.join(sorted(GREETING_TEMPLATES))}."
        )
    return template.format(
        brand=vehicle.get("brand", ""), model=vehicle.get("model", ""),
    )


def build_whatsapp_link(vehicle: Mapping[str, Any], *, purpose: str = "inquiry") -> str:
    """Deep link that opens a chat with the seller, greeting prefilled."""
    text = quote(build_greeting(vehicle, purpose), safe=_URI_COMPONENT_SAFE)
    return f"{WHATSAPP_BASE_URL}{whatsapp_digits(vehicle.get('whatsapp'))}?text={text}"
