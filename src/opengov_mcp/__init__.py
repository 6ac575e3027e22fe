"""OpenGov MCP - Model Context Protocol access to Socrata open-data portals."""

__version__ = "0.1.0"

# Core modules
from opengov_mcp.core import (
    CatalogService,
    DocumentRetriever,
    IdSearcher,
    LRUCache,
    OpenGovError,
    RowFilter,
    SearchEngine,
    SearchResponse,
    SocrataClient,
)

# Utils
from opengov_mcp.utils.config import Config, get_config, load_config

__all__ = [
    # Version
    "__version__",
    # Core
    "CatalogService",
    "DocumentRetriever",
    "IdSearcher",
    "LRUCache",
    "OpenGovError",
    "RowFilter",
    "SearchEngine",
    "SearchResponse",
    "SocrataClient",
    # Config
    "Config",
    "get_config",
    "load_config",
]
