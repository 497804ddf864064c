"""Vehicle details and contact-link tool implementations."""

from __future__ import annotations

from storefront_mcp.contact import GREETING_TEMPLATES, build_whatsapp_link
from storefront_mcp.data.inventory import get_vehicle
from storefront_mcp.tools.responses import build_tool_response


def get_vehicle_details_impl(*, vehicle_id: str) -> str:
    """Full listing for one vehicle, with a prefilled viewing link."""
    vehicle = get_vehicle(vehicle_id)
    if vehicle is None:
        return f"Vehicle with ID '{vehicle_id}' not found in inventory."

    return build_tool_response(
        "get_vehicle_details",
        {
            "vehicle": vehicle,
            "contact_link": build_whatsapp_link(vehicle, purpose="viewing"),
        },
    )


def get_contact_link_impl(*, vehicle_id: str, purpose: str = "inquiry") -> str:
    """WhatsApp deep link for contacting the seller about one vehicle."""
    if purpose not in GREETING_TEMPLATES:
        return (
            f"Error: invalid purpose '{purpose}'. "
            f"Must be one of: {', '.join(sorted(GREETING_TEMPLATES))}."
        )
    vehicle = get_vehicle(vehicle_id)
    if vehicle is None:
        return f"Vehicle with ID '{vehicle_id}' not found in inventory."

    return build_tool_response(
        "get_contact_link",
        {
            "vehicle_id": vehicle["id"],
            "purpose": purpose,
            "url": build_whatsapp_link(vehicle, purpose=purpose),
        },
    )
