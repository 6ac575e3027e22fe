"""SoQL query guide prompt."""

from __future__ import annotations

from mcp.types import GetPromptResult, PromptMessage, TextContent


async def get_soql_guide_prompt() -> GetPromptResult:
    """Return guidance on querying datasets with the OpenGov tools."""
    return GetPromptResult(
        description="Guide for exploring and querying open-data portals",
        messages=[
            PromptMessage(
                role="user",
                content=TextContent(
                    type="text",
                    text=(
                        "# Querying Open Data with OpenGov MCP\n\n"
                        "## Finding a dataset\n"
                        "1. `get_data` with `type=catalog` and a `query` lists matching datasets\n"
                        "2. `type=categories` and `type=tags` show how the portal is organized\n"
                        "3. `type=dataset-metadata` and `type=column-info` describe one dataset\n\n"
                        "## Reading rows\n"
                        "Use `get_data` with `type=data-access` and a `datasetId`.\n"
                        "- `select`, `where`, `order`, `group`, `having` and `q` map to the "
                        "SoQL clauses of the same name\n"
                        "- `soqlQuery` sends a complete query as-is, e.g.\n"
                        "  `SELECT date, magnitude WHERE magnitude > 3.0 ORDER BY date DESC LIMIT 100`\n"
                        "- Without a `limit`, a large result comes back as a preview "
                        "(`is_sample: true`) with `next_offset` for the next page\n"
                        "- `limit: \"all\"` pages through everything up to the row-fetch cap\n\n"
                        "## Search then fetch\n"
                        "1. `search` with `datasetId` and `query` returns ids ranked by score\n"
                        "2. `fetch` with those `ids` returns the full rows (50 per call)\n"
                        "Rows without an id field get positional ids like `row_42`; they "
                        "point at a position in the dataset and may drift if the data changes.\n\n"
                        "## SoQL tips\n"
                        "- Quote text values with single quotes: `status = 'open'`\n"
                        "- Dates compare as strings: `date > '2024-01-01T00:00:00'`\n"
                        "- Aggregate with `select=count(*)` and `group=category`\n"
                        "- Use `q` for free-text search when you do not know the column\n"
                    ),
                ),
            )
        ],
    )


PROMPT_SPEC = {
    "name": "soql_guide",
    "description": "Learn how to find datasets and query them with SoQL",
}
