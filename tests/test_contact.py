"""WhatsApp handoff link tests."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from storefront_mcp.contact import (
    GREETING_TEMPLATES,
    build_greeting,
    build_whatsapp_link,
    whatsapp_digits,
)
from storefront_mcp.data.seed import seed_vehicles

CIVIC = next(v for v in seed_vehicles() if v["id"] == "4")


class TestDigits:
    @pytest.mark.parametrize(
        ("handle", "expected"),
        [
            ("+853612345", "853612345"),
            ("+60 12-345 6789", "60123456789"),
            ("(852) 5123 4567", "85251234567"),
            ("", ""),
            (None, ""),
            (60123, "60123"),
        ],
    )
    def test_non_digits_are_stripped(self, handle, expected):
        assert whatsapp_digits(handle) == expected


class TestGreeting:
    def test_inquiry(self):
        assert build_greeting(CIVIC) == "Hello, I'm interested in the Honda Civic Hatchback."

    def test_viewing(self):
        assert build_greeting(CIVIC, "viewing") == (
            "Hello, I'd like to book a viewing: Honda Civic Hatchback"
        )

    def test_unknown_purpose(self):
        with pytest.raises(ValueError, match="Unknown contact purpose"):
            build_greeting(CIVIC, "haggle")


class TestLink:
    def test_inquiry_link_is_exact(self):
        assert build_whatsapp_link(CIVIC) == (
            "https://wa.me/853612345"
            "?text=Hello%2C%20I'm%20interested%20in%20the%20Honda%20Civic%20Hatchback."
        )

    def test_viewing_link_is_exact(self):
        assert build_whatsapp_link(CIVIC, purpose="viewing") == (
            "https://wa.me/853612345"
            "?text=Hello%2C%20I'd%20like%20to%20book%20a%20viewing%3A%20Honda%20Civic%20Hatchback"
        )

    @pytest.mark.parametrize("purpose", sorted(GREETING_TEMPLATES))
    def test_text_decodes_back_to_greeting(self, purpose):
        vehicle = {"brand": "Škoda", "model": "Octavia & Co #1", "whatsapp": "+420 777"}
        parts = urlsplit(build_whatsapp_link(vehicle, purpose=purpose))
        assert parts.path == "/420777"
        assert parse_qs(parts.query)["text"] == [build_greeting(vehicle, purpose)]

    def test_missing_handle_still_builds_a_link(self):
        link = build_whatsapp_link({"brand": "Kia", "model": "Rio"})
        assert link.startswith("https://wa.me/?text=")
