"""MCP tools registration and integration."""

from __future__ import annotations

import json
import uuid
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from opengov_mcp.core.errors import InternalError, InvalidParams, OpenGovError
from opengov_mcp.utils.logging import get_logger
from opengov_mcp.utils.timing import TimingContext

from ..services import Services
from . import fetch, get_data, search

logger = get_logger(__name__)

# Collect all tool modules
TOOL_MODULES = [
    get_data,
    search,
    fetch,
]

# Collect tool specifications and handlers
TOOL_SPECS = [module.TOOL_SPEC for module in TOOL_MODULES]
TOOL_HANDLERS = {
    module.TOOL_SPEC["name"]: getattr(module, f"handle_{module.TOOL_SPEC['name']}")
    for module in TOOL_MODULES
}


class ToolError(Exception):
    """Raised to the MCP server so the call is answered with ``isError``.

    The message is the JSON error payload.
    """

    def __init__(self, error: OpenGovError):
        self.error = error
        super().__init__(json.dumps(error.to_dict()))


async def run_tool(
    name: str, arguments: dict[str, Any] | None, services: Services
) -> list[TextContent]:
    """Invoke a tool handler by name.

    Raises:
        OpenGovError: Unknown tool, or the handler failed
    """
    handler = TOOL_HANDLERS.get(name)
    if not handler:
        raise InvalidParams(f"Unknown tool: {name}")
    return await handler(arguments or {}, services)


def register_tools(server: Server, services: Services) -> None:
    """Register all MCP tools with the server."""

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List all available tools."""
        return [Tool(**spec) for spec in TOOL_SPECS]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool invocation by routing to the appropriate handler."""
        request_id = str(uuid.uuid4())[:8]
        logger.debug(f"Tool called: {name} (request_id={request_id})")

        try:
            with TimingContext(f"tool.{name}"):
                return await run_tool(name, arguments, services)
        except OpenGovError as e:
            logger.warning(
                f"Tool {name} failed: {e.message}",
                extra={"event": "tool_error", "tool": name, "code": int(e.code)},
            )
            raise ToolError(e) from e
        except Exception as e:
            logger.error(f"Error executing tool {name}: {e}", exc_info=True)
            raise ToolError(InternalError(str(e))) from e
