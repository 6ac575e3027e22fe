"""Argument helpers shared by the tool handlers."""

from __future__ import annotations

import json
from typing import Any

from mcp.types import TextContent

from opengov_mcp.core.errors import InvalidParams
from opengov_mcp.utils.config import get_default_domain


def resolve_domain(args: dict[str, Any]) -> str:
    """Domain from the arguments, else DATA_PORTAL_URL at call time."""
    domain = args.get("domain") or get_default_domain()
    if not domain:
        raise InvalidParams(
            "domain is required when DATA_PORTAL_URL is not configured"
        )
    return domain


def require(args: dict[str, Any], key: str, operation: str) -> Any:
    value = args.get(key)
    if value in (None, ""):
        raise InvalidParams(f"{key} is required for {operation}")
    return value


def as_int(value: Any, name: str, default: int) -> int:
    """Coerce a JSON number to int; floats must be whole."""
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParams(f"{name} must be an integer, got {value!r}")
    return value


def json_content(payload: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2))]
