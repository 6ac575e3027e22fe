"""Document retrieval tool."""

from __future__ import annotations

from typing import Any

from mcp.types import TextContent

from opengov_mcp.core.errors import InvalidParams

from ..common.args import json_content, require, resolve_domain
from ..services import Services


async def handle_fetch(args: dict[str, Any], services: Services) -> list[TextContent]:
    """Fetch full rows for ids returned by the search tool."""
    dataset_id = require(args, "datasetId", "fetch")
    ids = args.get("ids")
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise InvalidParams("ids must be a list of strings")

    documents = await services.documents.retrieve(ids, dataset_id, resolve_domain(args))
    return json_content(documents)


TOOL_SPEC = {
    "name": "fetch",
    "description": (
        "Retrieve complete rows by id. Ids are values of the dataset's id "
        "field or positional ids of the form row_<offset>. At most 50 ids "
        "per call; oversized rows are truncated."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "ids": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Row ids to retrieve",
            },
            "datasetId": {
                "type": "string",
                "description": "Dataset identifier (e.g. 6zsd-86xi)",
            },
            "domain": {
                "type": "string",
                "description": "Optional portal hostname, without protocol",
            },
        },
        "required": ["ids", "datasetId"],
    },
}
