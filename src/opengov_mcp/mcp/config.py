"""MCP server configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    base_url: str = "http://localhost:8000"
    log_level: str = "info"


@dataclass
class PortalConfig:
    """Data portal the tools default to."""

    data_portal_url: str | None = None


@dataclass
class MCPConfig:
    """Main MCP configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    portal: PortalConfig = field(default_factory=PortalConfig)

    @classmethod
    def from_file(cls, config_path: str | Path) -> MCPConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config.mcp.yml

        Returns:
            MCPConfig instance
        """
        config_path = Path(config_path)

        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config from {config_path}: {e}")
            logger.info("Using default configuration")
            return cls()

        server_data = data.get("server", {}) or {}
        server = ServerConfig(
            host=server_data.get("host", "0.0.0.0"),
            port=int(server_data.get("port", 8000)),
            base_url=server_data.get("base_url", "http://localhost:8000"),
            log_level=server_data.get("log_level", "info"),
        )

        portal_data = data.get("portal", {}) or {}
        portal = PortalConfig(data_portal_url=portal_data.get("data_portal_url"))

        logger.info(f"Loaded configuration from {config_path}")
        return cls(server=server, portal=portal)

    @classmethod
    def from_env(cls) -> MCPConfig:
        """Load configuration from environment variables.

        Returns:
            MCPConfig instance
        """
        server = ServerConfig(
            host=os.getenv("MCP_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            base_url=os.getenv("MCP_BASE_URL", "http://localhost:8000"),
            log_level=os.getenv("LOG_LEVEL", "info"),
        )
        portal = PortalConfig(data_portal_url=os.getenv("DATA_PORTAL_URL"))
        return cls(server=server, portal=portal)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> MCPConfig:
        """Load configuration with priority: env vars > config file > defaults.

        Args:
            config_path: Optional path to config file. Defaults to ./config.mcp.yml

        Returns:
            MCPConfig instance
        """
        if config_path is None:
            config_path = Path.cwd() / "config.mcp.yml"

        config = cls.from_file(config_path)
        env_config = cls.from_env()

        env_overrides = {
            "MCP_HOST": ("server", "host"),
            "PORT": ("server", "port"),
            "MCP_BASE_URL": ("server", "base_url"),
            "LOG_LEVEL": ("server", "log_level"),
            "DATA_PORTAL_URL": ("portal", "data_portal_url"),
        }

        for env_var, (section, attr) in env_overrides.items():
            if os.getenv(env_var):
                section_obj = getattr(config, section)
                env_section_obj = getattr(env_config, section)
                setattr(section_obj, attr, getattr(env_section_obj, attr))

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "server": {
                "host": self.server.host,
                "port": self.server.port,
                "base_url": self.server.base_url,
                "log_level": self.server.log_level,
            },
            "portal": {"data_portal_url": self.portal.data_portal_url},
        }
