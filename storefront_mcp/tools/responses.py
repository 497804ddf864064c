"""Shared response helpers for storefront tool implementations."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def build_tool_response(tool_name: str, data: dict[str, Any]) -> str:
    payload = {
        "_tool": tool_name,
        "_meta": {"schema_version": 1},
        "data": data,
    }
    return json.dumps(payload, indent=2, default=str, ensure_ascii=False)


def log_and_return_tool_error(*, tool_name: str, exc: Exception, user_message: str) -> str:
    """Log an unexpected tool failure with traceback and return a user-safe message."""
    logger.error("Tool %s failed: %s", tool_name, exc, exc_info=exc)
    return user_message
