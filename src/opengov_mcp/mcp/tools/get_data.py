"""Unified portal tool: catalog discovery, metadata and row access."""

from __future__ import annotations

from typing import Any

from mcp.types import TextContent

from opengov_mcp.core.errors import InvalidParams
from opengov_mcp.core.filters import RowFilter
from opengov_mcp.utils.logging import get_logger

from ..common.args import as_int, json_content, require, resolve_domain
from ..services import Services

logger = get_logger(__name__)

OPERATION_TYPES = [
    "catalog",
    "categories",
    "tags",
    "dataset-metadata",
    "column-info",
    "data-access",
    "site-metrics",
]


def _data_limit(value: Any) -> int | str | None:
    if value is None or value == "all":
        return value
    return as_int(value, "limit", 0)


async def handle_get_data(args: dict[str, Any], services: Services) -> list[TextContent]:
    """Route a ``get_data`` call to the operation named by ``type``.

    Args:
        args: Tool arguments; ``type`` selects the operation
        services: Engines bound to the running server

    Returns:
        List of TextContent with the operation's JSON result
    """
    operation = args.get("type")
    if operation not in OPERATION_TYPES:
        raise InvalidParams(f"Unknown operation type: {operation}")

    domain = resolve_domain(args)
    catalog = services.catalog

    if operation == "catalog":
        result: Any = await catalog.catalog(
            domain,
            query=args.get("query") or None,
            limit=as_int(args.get("limit"), "limit", 10),
            offset=as_int(args.get("offset"), "offset", 0),
        )
    elif operation == "categories":
        result = await catalog.categories(domain)
    elif operation == "tags":
        result = await catalog.tags(domain)
    elif operation == "dataset-metadata":
        dataset_id = require(args, "datasetId", operation)
        result = await catalog.dataset_metadata(dataset_id, domain)
    elif operation == "column-info":
        dataset_id = require(args, "datasetId", operation)
        result = await catalog.column_info(dataset_id, domain)
    elif operation == "data-access":
        dataset_id = require(args, "datasetId", operation)
        response = await services.search.search(
            dataset_id,
            domain,
            row_filter=RowFilter.from_args(args),
            limit=_data_limit(args.get("limit")),
            offset=as_int(args.get("offset"), "offset", 0),
        )
        result = response.to_dict()
    else:
        result = await catalog.site_metrics(domain)

    logger.debug(f"get_data {operation} on {domain} succeeded")
    return json_content(result)


TOOL_SPEC = {
    "name": "get_data",
    "description": (
        "Access data and metadata to learn more about the city and its "
        "underlying information."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "type": {
                "type": "string",
                "enum": OPERATION_TYPES,
                "description": (
                    "The type of operation to perform:"
                    "\n- catalog: List datasets with optional search"
                    "\n- categories: List all dataset categories"
                    "\n- tags: List all dataset tags"
                    "\n- dataset-metadata: Get detailed metadata for a specific dataset"
                    "\n- column-info: Get column details for a specific dataset"
                    "\n- data-access: Access records from a dataset (with query support)"
                    "\n- site-metrics: Get portal-wide statistics"
                ),
            },
            "domain": {
                "type": "string",
                "description": (
                    "Optional domain (hostname only, without protocol). "
                    "Defaults to the configured data portal."
                ),
            },
            "query": {
                "type": "string",
                "description": (
                    "For type=catalog: search query to filter datasets. "
                    "For type=data-access: complete SoQL query."
                ),
            },
            "datasetId": {
                "type": "string",
                "description": (
                    "Dataset identifier (e.g. 6zsd-86xi), required for "
                    "dataset-metadata, column-info and data-access."
                ),
            },
            "soqlQuery": {
                "type": "string",
                "description": (
                    "For type=data-access only. Complete SoQL query; takes "
                    "precedence over query when both are given."
                ),
            },
            "select": {
                "type": "string",
                "description": "For type=data-access only. Columns to return.",
            },
            "where": {
                "type": "string",
                "description": (
                    'For type=data-access only. Row filter (e.g. "magnitude > 3.0").'
                ),
            },
            "order": {
                "type": "string",
                "description": 'For type=data-access only. Sort order (e.g. "date DESC").',
            },
            "group": {
                "type": "string",
                "description": "For type=data-access only. Grouping for aggregates.",
            },
            "having": {
                "type": "string",
                "description": "For type=data-access only. Filter over grouped rows.",
            },
            "q": {
                "type": "string",
                "description": "For type=data-access only. Full-text search across the dataset.",
            },
            "limit": {
                "type": ["integer", "string"],
                "description": (
                    "Maximum number of results. For type=data-access, \"all\" "
                    "pages through the whole result up to the row-fetch cap; "
                    "without a limit a large result returns a preview."
                ),
            },
            "offset": {
                "type": "integer",
                "description": "Number of results to skip for pagination.",
                "default": 0,
            },
        },
        "required": ["type"],
        "additionalProperties": False,
    },
}
