"""Core modules for OpenGov MCP."""

# Re-export all public APIs
from opengov_mcp.core.cache import CacheCleanupTask, LRUCache
from opengov_mcp.core.catalog import CatalogService
from opengov_mcp.core.client import SocrataClient
from opengov_mcp.core.documents import DocumentLimits, DocumentRetriever
from opengov_mcp.core.errors import (
    ErrorCode,
    InternalError,
    InvalidParams,
    OpenGovError,
    RemoteFetchFailed,
)
from opengov_mcp.core.filters import RowFilter
from opengov_mcp.core.portal_info import PortalInfo, get_portal_info
from opengov_mcp.core.search import SearchEngine, SearchLimits, SearchResponse
from opengov_mcp.core.search_ids import IdSearcher, IdSearchLimits, SearchResult

__all__ = [
    # Cache
    "CacheCleanupTask",
    "LRUCache",
    # Provider access
    "CatalogService",
    "SocrataClient",
    "PortalInfo",
    "get_portal_info",
    # Errors
    "ErrorCode",
    "InternalError",
    "InvalidParams",
    "OpenGovError",
    "RemoteFetchFailed",
    # Engines
    "DocumentLimits",
    "DocumentRetriever",
    "IdSearchLimits",
    "IdSearcher",
    "RowFilter",
    "SearchEngine",
    "SearchLimits",
    "SearchResponse",
    "SearchResult",
]
