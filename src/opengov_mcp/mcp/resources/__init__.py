"""MCP resources: server info, runtime status and portal details."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone

from mcp.server import Server
from mcp.types import Resource

from opengov_mcp import __version__
from opengov_mcp.core.portal_info import get_portal_info
from opengov_mcp.utils.timing import get_latency_tracker

from ..services import Services

INFO_URI = "resource://opengov/info"
STATUS_URI = "resource://opengov/status"
PORTAL_URI = "resource://opengov/portal"


def register_resources(server: Server, services: Services) -> None:
    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return [
            Resource(
                uri=INFO_URI,
                name="Server Information",
                description="Basic information about the OpenGov MCP server.",
                mimeType="text/plain",
            ),
            Resource(
                uri=STATUS_URI,
                name="Server Status",
                description="Server status, cache usage and tool latency.",
                mimeType="application/json",
            ),
            Resource(
                uri=PORTAL_URI,
                name="Data Portal",
                description="Title and URL of the configured data portal.",
                mimeType="application/json",
            ),
        ]

    def _read_info() -> str:
        return (
            "OpenGov MCP Server - A Model Context Protocol server for Socrata "
            "open-data portals. Discover datasets, inspect their metadata, "
            "query rows with SoQL, and search and fetch individual records."
        )

    def _read_status() -> str:
        tracker = get_latency_tracker()
        return json.dumps(
            {
                "status": "running",
                "version": __version__,
                "server": "OpenGov MCP",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime_seconds": round(tracker.get_uptime_seconds(), 2),
                "cache": {
                    "entries": len(services.cache),
                    "size_bytes": services.cache.size_bytes,
                    "max_size_bytes": services.cache.max_size_bytes,
                    "cleanup_running": services.cleanup.running,
                },
                "latency": tracker.get_stats(),
            },
            indent=2,
        )

    async def _read_portal() -> str:
        portal_url = os.getenv("DATA_PORTAL_URL")
        if not portal_url:
            return json.dumps(
                {
                    "error": "Portal not configured",
                    "error_code": "PORTAL_NOT_CONFIGURED",
                    "message": "Set DATA_PORTAL_URL to the data portal's URL.",
                },
                indent=2,
            )
        info = await get_portal_info(services.client, portal_url)
        return json.dumps(info.to_dict(), indent=2)

    @server.read_resource()
    async def read_resource(uri: str) -> str:
        uri_str = str(uri)
        if uri_str == INFO_URI:
            return _read_info()
        if uri_str == STATUS_URI:
            return _read_status()
        if uri_str == PORTAL_URI:
            return await _read_portal()

        return json.dumps(
            {
                "error": "Unknown resource",
                "error_code": "UNKNOWN_RESOURCE",
                "uri": uri_str,
                "message": f"Resource URI '{uri_str}' is not recognized.",
            },
            indent=2,
        )
