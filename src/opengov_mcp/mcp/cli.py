"""Command line interface for running the OpenGov MCP server."""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path

import click
import uvicorn
from dotenv import load_dotenv
from mcp.server.stdio import stdio_server

from opengov_mcp.mcp.config import MCPConfig
from opengov_mcp.mcp.server import build_server, create_mcp_server
from opengov_mcp.mcp.services import Services
from opengov_mcp.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _load_config(config: str | None) -> MCPConfig:
    load_dotenv()
    mcp_config = MCPConfig.load(Path(config) if config else None)
    # Tools read the default portal from the environment on every call
    if mcp_config.portal.data_portal_url:
        os.environ.setdefault("DATA_PORTAL_URL", mcp_config.portal.data_portal_url)
    if not os.getenv("DATA_PORTAL_URL"):
        logger.warning("DATA_PORTAL_URL is not set; every tool call must pass a domain")
    return mcp_config


@click.group()
def main() -> None:
    """Run OpenGov as an MCP provider."""


@main.command()
@click.option(
    "--host", default=None, help="Bind address (default: from config or 0.0.0.0)"
)
@click.option(
    "--port", default=None, type=int, help="Port to bind (default: from config or 8000)"
)
@click.option("--log-level", default=None, help="Log level (default: from config or info)")
@click.option(
    "--config", default=None, help="Path to config.mcp.yml (default: ./config.mcp.yml)"
)
def serve(
    host: str | None, port: int | None, log_level: str | None, config: str | None
) -> None:
    """Start MCP server with StreamableHTTP transport.

    Configuration priority: CLI arguments > environment variables > config file > defaults
    """
    mcp_config = _load_config(config)

    if host:
        mcp_config.server.host = host
    if port:
        mcp_config.server.port = port
    if log_level:
        mcp_config.server.log_level = log_level
    setup_logging(level=mcp_config.server.log_level.upper())

    app, http_transport, mcp_server, services = build_server(mcp_config)

    @asynccontextmanager
    async def lifespan(_app):
        """Run the MCP server and cache maintenance for the app's lifetime."""
        services.start()
        async with http_transport.connect() as (read_stream, write_stream):

            async def run_mcp_server():
                try:
                    await mcp_server.run(
                        read_stream,
                        write_stream,
                        mcp_server.create_initialization_options(),
                    )
                except Exception as e:
                    logger.error(f"MCP server error: {e}", exc_info=True)

            task = asyncio.create_task(run_mcp_server())

            yield

            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await services.close()

    app.router.lifespan_context = lifespan

    click.echo(f"MCP server: {mcp_config.server.base_url} (StreamableHTTP)")
    click.echo("Endpoints: /mcp · /health · /healthz · /metadata")
    click.echo(f"Data portal: {os.getenv('DATA_PORTAL_URL') or '(none)'}")
    click.echo("")

    uvicorn.run(
        app,
        host=mcp_config.server.host,
        port=mcp_config.server.port,
        log_level=mcp_config.server.log_level.lower(),
        access_log=True,
    )


@main.command()
@click.option("--log-level", default=None, help="Log level (default: from config or info)")
@click.option(
    "--config", default=None, help="Path to config.mcp.yml (default: ./config.mcp.yml)"
)
def stdio(log_level: str | None, config: str | None) -> None:
    """Start MCP server on stdin/stdout."""
    mcp_config = _load_config(config)
    setup_logging(level=(log_level or mcp_config.server.log_level).upper())
    asyncio.run(_run_stdio())


async def _run_stdio() -> None:
    services = Services.from_config()
    mcp_server = create_mcp_server(services)
    services.start()
    try:
        async with stdio_server() as (read_stream, write_stream):
            await mcp_server.run(
                read_stream,
                write_stream,
                mcp_server.create_initialization_options(),
            )
    finally:
        await services.close()


if __name__ == "__main__":  # pragma: no cover
    main()
