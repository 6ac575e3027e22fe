"""MCP server implementation for Socrata open-data portals.

This module provides a Model Context Protocol server with:
- StreamableHTTP transport for HTTP deployments
- Stdio transport for local clients
- Dataset discovery, row query, search and fetch tools
"""

from __future__ import annotations

from mcp.server import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from opengov_mcp import __version__
from opengov_mcp.mcp.config import MCPConfig
from opengov_mcp.utils.logging import get_logger

from .prompts import register_prompts
from .resources import register_resources
from .services import Services
from .tools import TOOL_SPECS, register_tools

logger = get_logger(__name__)

SERVER_NAME = "opengov-mcp-server"
SERVER_INSTRUCTIONS = (
    "This MCP server gives access to a Socrata open-data portal. Use get_data "
    "to browse the catalog, inspect dataset metadata and columns, and query rows "
    "with SoQL. Use search to find matching row ids in a dataset and fetch to "
    "read the full rows."
)


def create_mcp_server(services: Services) -> Server:
    """Create and configure the MCP server instance."""
    server = Server(
        name=SERVER_NAME, version=__version__, instructions=SERVER_INSTRUCTIONS
    )

    register_tools(server, services)
    register_resources(server, services)
    register_prompts(server)
    return server


def create_asgi_app(
    mcp_server: Server,
    http_transport: StreamableHTTPServerTransport,
    config: MCPConfig,
) -> Starlette:
    """Create the ASGI application serving the MCP endpoint."""

    async def handle_mcp_endpoint(request: Request) -> Response:
        """Handle MCP connections via StreamableHTTP transport."""
        await http_transport.handle_request(
            request.scope, request.receive, request._send
        )
        return Response()

    async def handle_health(request: Request) -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(
            {"status": "healthy", "service": SERVER_NAME, "version": __version__}
        )

    async def handle_healthz(request: Request) -> PlainTextResponse:
        return PlainTextResponse("OK")

    async def handle_root(request: Request) -> PlainTextResponse:
        return PlainTextResponse("OpenGov MCP Server running.")

    async def handle_metadata(request: Request) -> JSONResponse:
        """Return MCP server metadata for discovery."""
        return JSONResponse(
            {
                "name": SERVER_NAME,
                "version": __version__,
                "instructions": SERVER_INSTRUCTIONS,
                "base_url": config.server.base_url,
                "capabilities": {
                    "tools": True,
                    "resources": True,
                    "prompts": True,
                },
                "tools": [spec["name"] for spec in TOOL_SPECS],
                "endpoints": {"mcp": "/mcp", "health": "/health"},
                "transport": {"type": "streamable-http"},
            }
        )

    routes = [
        Route("/", endpoint=handle_root, methods=["GET", "HEAD"]),
        Route("/health", endpoint=handle_health, methods=["GET"]),
        Route("/healthz", endpoint=handle_healthz, methods=["GET"]),
        Route("/metadata", endpoint=handle_metadata, methods=["GET"]),
        Route("/mcp", endpoint=handle_mcp_endpoint, methods=["GET", "POST", "DELETE"]),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["mcp-session-id"],
        ),
    ]

    app = Starlette(routes=routes, middleware=middleware)
    logger.info("ASGI application created")
    return app


def build_server(
    config: MCPConfig | None = None,
    services: Services | None = None,
) -> tuple[Starlette, StreamableHTTPServerTransport, Server, Services]:
    """Build and configure the complete HTTP MCP server.

    Args:
        config: MCP configuration. If None, loads from config.mcp.yml and environment variables.
        services: Engines to serve. If None, built from the global configuration.

    Returns:
        Tuple of (Starlette ASGI app, StreamableHTTP transport, MCP Server, Services)
    """
    if config is None:
        config = MCPConfig.load()
    if services is None:
        services = Services.from_config()

    logger.info(f"Building MCP server at {config.server.base_url}")

    mcp_server = create_mcp_server(services)
    http_transport = StreamableHTTPServerTransport(
        mcp_session_id=None,
        is_json_response_enabled=False,
        event_store=None,
    )

    app = create_asgi_app(mcp_server, http_transport, config)
    return app, http_transport, mcp_server, services
