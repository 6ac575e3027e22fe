"""Relevance search tool returning row identifiers."""

from __future__ import annotations

from typing import Any

from mcp.types import TextContent

from ..common.args import as_int, json_content, require, resolve_domain
from ..services import Services


async def handle_search(args: dict[str, Any], services: Services) -> list[TextContent]:
    """Search a dataset and return matching row ids with scores.

    Args:
        args: Dictionary with keys:
            - datasetId: Dataset to search (required)
            - query: Full-text query (optional)
            - where: SoQL filter (optional)
            - limit: Maximum rows to consider (default: 100)
            - offset: Offset of the first row (default: 0)
            - domain: Portal hostname (optional)
        services: Engines bound to the running server

    Returns:
        List of TextContent with ``{results, total_count}``
    """
    dataset_id = require(args, "datasetId", "search")
    response = await services.id_search.search_ids(
        dataset_id,
        resolve_domain(args),
        query=args.get("query") or None,
        where=args.get("where") or None,
        limit=as_int(args.get("limit"), "limit", 100),
        offset=as_int(args.get("offset"), "offset", 0),
    )
    return json_content(response.to_dict())


TOOL_SPEC = {
    "name": "search",
    "description": (
        "Search a dataset and return the ids of matching rows ranked by "
        "relevance. Pass the ids to the fetch tool to read the rows."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "datasetId": {
                "type": "string",
                "description": "Dataset identifier (e.g. 6zsd-86xi)",
            },
            "query": {
                "type": "string",
                "description": "Full-text query; also used to score results",
            },
            "where": {
                "type": "string",
                "description": 'SoQL row filter (e.g. "status = \'open\'")',
            },
            "limit": {
                "type": "integer",
                "description": "Maximum rows to consider (default: 100)",
                "default": 100,
                "minimum": 1,
            },
            "offset": {
                "type": "integer",
                "description": "Offset of the first row (default: 0)",
                "default": 0,
                "minimum": 0,
            },
            "domain": {
                "type": "string",
                "description": "Optional portal hostname, without protocol",
            },
        },
        "required": ["datasetId"],
    },
}
