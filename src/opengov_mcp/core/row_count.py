"""Count-only queries used to size a fetch before running it."""

from __future__ import annotations

from typing import Any, Optional

from opengov_mcp.core.client import SocrataClient, base_url_for, resource_path
from opengov_mcp.core.filters import RowFilter
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)


def parse_count(response: Any) -> int:
    """Read the count from a ``count(*)`` response; 0 when absent or invalid."""
    if not isinstance(response, list) or not response:
        return 0
    first = response[0]
    if not isinstance(first, dict):
        return 0
    raw = first.get("count")
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return 0


async def count_rows(
    client: SocrataClient,
    dataset_id: str,
    domain: str,
    row_filter: Optional[RowFilter] = None,
) -> int:
    """Return the number of rows matching ``row_filter``.

    Fetch errors propagate unchanged.
    """
    params = (row_filter or RowFilter()).count_params()
    response = await client.fetch(
        resource_path(dataset_id), params, base_url_for(domain)
    )
    total = parse_count(response)
    logger.debug(f"Row count for {dataset_id}@{domain}: {total}")
    return total
