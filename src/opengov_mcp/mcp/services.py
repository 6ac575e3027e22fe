"""Engines and shared state used by the MCP tools.

One ``Services`` instance is built per server process and handed to the
tool handlers, so the cache and HTTP client have a single owner whose
lifetime matches the server's.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

import httpx

from opengov_mcp.core.cache import CacheCleanupTask, LRUCache
from opengov_mcp.core.catalog import CatalogService
from opengov_mcp.core.client import SocrataClient
from opengov_mcp.core.documents import DocumentLimits, DocumentRetriever
from opengov_mcp.core.search import SearchEngine, SearchLimits
from opengov_mcp.core.search_ids import IdSearcher, IdSearchLimits
from opengov_mcp.utils.config import Config, get_config
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    client: SocrataClient
    cache: LRUCache[List[Any]]
    cleanup: CacheCleanupTask
    search: SearchEngine
    documents: DocumentRetriever
    id_search: IdSearcher
    catalog: CatalogService

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> Services:
        """Wire the engines from configuration.

        Args:
            config: Configuration; the global one when None
            http_client: Optional preconfigured client (used by tests)
        """
        config = config or get_config()

        client = SocrataClient(
            timeout=float(config.get("socrata.timeout", 30.0)),
            http_client=http_client,
        )
        cache: LRUCache[List[Any]] = LRUCache(
            max_size_bytes=int(config.get("cache.max_size_bytes", 50 * 1024 * 1024)),
            ttl_seconds=float(config.get("cache.ttl_seconds", 300)),
        )
        cleanup = CacheCleanupTask(
            cache, interval_seconds=float(config.get("cache.cleanup_interval_seconds", 60))
        )

        return cls(
            client=client,
            cache=cache,
            cleanup=cleanup,
            search=SearchEngine(client, SearchLimits.from_config(config)),
            documents=DocumentRetriever(client, cache, DocumentLimits.from_config(config)),
            id_search=IdSearcher(client, IdSearchLimits.from_config(config)),
            catalog=CatalogService(client),
        )

    def start(self) -> None:
        """Start background maintenance. Must run inside an event loop."""
        self.cleanup.start()
        logger.info("Services started")

    async def close(self) -> None:
        await self.cleanup.stop()
        self.cache.clear()
        await self.client.aclose()
        logger.info("Services stopped")
