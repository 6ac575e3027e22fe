"""Portal-level catalog and metadata lookups."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from opengov_mcp.core.client import SocrataClient, base_url_for
from opengov_mcp.core.errors import OpenGovError
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

CATALOG_PATH = "/api/catalog/v1"


class CatalogService:
    """Discovery operations against a portal's catalog and views APIs."""

    def __init__(self, client: SocrataClient):
        self.client = client

    async def catalog(
        self,
        domain: str,
        query: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """List datasets on the portal, optionally matching ``query``."""
        params: Dict[str, Any] = {
            "limit": limit,
            "offset": offset,
            "search_context": domain,
        }
        if query:
            params["q"] = query

        response = await self.client.fetch(CATALOG_PATH, params, base_url_for(domain))
        if not isinstance(response, dict):
            return []
        return response.get("results") or []

    async def categories(self, domain: str) -> List[Dict[str, Any]]:
        return await self._facet(domain, "categories")

    async def tags(self, domain: str) -> List[Dict[str, Any]]:
        return await self._facet(domain, "tags")

    async def _facet(self, domain: str, facet: str) -> List[Dict[str, Any]]:
        """Read a catalog facet (categories or tags).

        Tries ``/api/catalog/v1/domain_<facet>`` first. An empty or failed
        answer falls back to ``/api/catalog/v1?only=<facet>``. If the
        fallback fails too, the primary error is raised.
        """
        base_url = base_url_for(domain)
        params = {"search_context": domain}

        try:
            response = await self.client.fetch(
                f"{CATALOG_PATH}/domain_{facet}", params, base_url
            )
        except OpenGovError as primary_error:
            logger.warning(
                f"domain_{facet} lookup failed for {domain}, trying only={facet}: "
                f"{primary_error}"
            )
            try:
                return await self._facet_fallback(base_url, params, facet)
            except OpenGovError:
                raise primary_error

        if isinstance(response, list) and response:
            return response

        logger.debug(f"domain_{facet} empty for {domain}, trying only={facet}")
        return await self._facet_fallback(base_url, params, facet)

    async def _facet_fallback(
        self, base_url: str, params: Dict[str, Any], facet: str
    ) -> List[Dict[str, Any]]:
        response = await self.client.fetch(
            CATALOG_PATH, {**params, "only": facet}, base_url
        )
        if not isinstance(response, dict):
            return []
        return response.get(facet) or []

    async def dataset_metadata(self, dataset_id: str, domain: str) -> Dict[str, Any]:
        return await self.client.fetch(
            f"/api/views/{dataset_id}", None, base_url_for(domain)
        )

    async def column_info(self, dataset_id: str, domain: str) -> List[Dict[str, Any]]:
        return await self.client.fetch(
            f"/api/views/{dataset_id}/columns", None, base_url_for(domain)
        )

    async def site_metrics(self, domain: str) -> Dict[str, Any]:
        return await self.client.fetch(
            "/api/site_metrics.json", None, base_url_for(domain)
        )
