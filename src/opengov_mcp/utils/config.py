"""Configuration management for OpenGov MCP."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_ROW_FETCH_CAP = 100_000


class Config:
    """Configuration manager for OpenGov MCP."""

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """Initialize configuration.

        Args:
            config_dict: Configuration dictionary. If None, uses defaults.
        """
        self._config = config_dict or self._get_default_config()

    @staticmethod
    def _get_default_config() -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "socrata": {
                "max_rows": 50_000,  # Provider per-call hard cap
                "default_preview_rows": 1_000,
                "row_fetch_cap": DEFAULT_ROW_FETCH_CAP,
                "timeout": 30.0,  # seconds
            },
            "documents": {
                "max_docs_per_request": 50,
                "max_row_bytes": 20 * 1024,
            },
            "search_ids": {
                "max_result_bytes": 2 * 1024,
                "max_total_bytes": 10 * 1024 * 1024,
                "avg_result_bytes": 100,  # Pre-flight estimate per result
            },
            "cache": {
                "max_size_bytes": 50 * 1024 * 1024,
                "ttl_seconds": 300,
                "cleanup_interval_seconds": 60,
            },
        }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> Config:
        """Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Example:
            >>> config = Config.from_yaml("config.yml")
            >>> print(config.get("socrata.max_rows"))
        """
        yaml_path = Path(yaml_path)

        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        logger.info(f"Loading config from {yaml_path}")

        with open(yaml_path, "r") as f:
            config_dict = yaml.safe_load(f)

        merged_config = cls._merge_configs(
            cls._get_default_config(), config_dict or {}
        )
        return cls(merged_config)

    @staticmethod
    def _merge_configs(
        base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Supports dot notation for nested keys.

        Example:
            >>> config.get("cache.ttl_seconds")
            300
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by key (dot notation)."""
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            config = config.setdefault(k, {})

        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self._config.copy()

    def __repr__(self) -> str:
        return f"Config({self._config})"


# Global config instance
_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance.

    Priority: OPENGOV_MCP_CONFIG env var > ./config.yml > defaults.
    """
    global _global_config
    if _global_config is None:
        env_path = os.getenv("OPENGOV_MCP_CONFIG")
        if env_path:
            path = Path(env_path)
            if path.exists():
                try:
                    _global_config = Config.from_yaml(path)
                    return _global_config
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(
                        f"Failed to load config from OPENGOV_MCP_CONFIG ({path}): {e}; falling back"
                    )
            else:
                logger.warning(
                    f"OPENGOV_MCP_CONFIG set to {path} but file does not exist; falling back"
                )

        config_path = Path("config.yml")
        if config_path.exists():
            try:
                _global_config = Config.from_yaml(config_path)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config.yml: {e}, using defaults")
                _global_config = Config()
        else:
            _global_config = Config()
    return _global_config


def set_config(config: Optional[Config]) -> None:
    """Set (or reset with None) the global configuration instance."""
    global _global_config
    _global_config = config


def load_config(yaml_path: str | Path) -> Config:
    """Load configuration from YAML and set as global."""
    config = Config.from_yaml(yaml_path)
    set_config(config)
    return config


def get_default_domain() -> Optional[str]:
    """Return the configured portal domain, without scheme.

    Read from DATA_PORTAL_URL on every call so a changed environment
    takes effect on the next request.
    """
    portal_url = os.getenv("DATA_PORTAL_URL", "").strip()
    if not portal_url:
        return None
    return re.sub(r"^https?://", "", portal_url).rstrip("/")


def get_row_fetch_cap() -> int:
    """Return the row-fetch cap for "all" requests.

    ROW_FETCH_CAP env var > config ``socrata.row_fetch_cap`` > 100000.
    """
    raw = os.getenv("ROW_FETCH_CAP")
    if raw:
        try:
            cap = int(raw)
            if cap > 0:
                return cap
            logger.warning(f"Ignoring non-positive ROW_FETCH_CAP={raw!r}")
        except ValueError:
            logger.warning(f"Ignoring invalid ROW_FETCH_CAP={raw!r}")
    return int(get_config().get("socrata.row_fetch_cap", DEFAULT_ROW_FETCH_CAP))
