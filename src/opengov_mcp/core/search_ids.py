"""Relevance search returning only row identifiers and scores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from opengov_mcp.core.cache import serialized_size
from opengov_mcp.core.client import SocrataClient, base_url_for, resource_path
from opengov_mcp.core.errors import InvalidParams, OpenGovError
from opengov_mcp.core.filters import RowFilter
from opengov_mcp.core.identifiers import extract_id, positional_id
from opengov_mcp.core.row_count import count_rows
from opengov_mcp.utils.config import Config
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

MAX_RESULT_BYTES = 2 * 1024
MAX_TOTAL_BYTES = 10 * 1024 * 1024
AVG_RESULT_BYTES = 100

BOOSTED_FIELDS = frozenset({"name", "title", "description"})
EXACT_MATCH_POINTS = 10
SUBSTRING_MATCH_POINTS = 1
BOOSTED_FIELD_BONUS = 2


@dataclass
class SearchResult:
    """A matching row's identifier and relevance score in [0, 1]."""

    id: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "score": self.score}

    def __repr__(self) -> str:
        return f"SearchResult(id={self.id}, score={self.score:.2f})"


@dataclass
class SearchIdsResponse:
    results: List[SearchResult]
    total_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "total_count": self.total_count,
        }


@dataclass
class IdSearchLimits:
    max_result_bytes: int = MAX_RESULT_BYTES
    max_total_bytes: int = MAX_TOTAL_BYTES
    avg_result_bytes: int = AVG_RESULT_BYTES

    @classmethod
    def from_config(cls, config: Config) -> IdSearchLimits:
        return cls(
            max_result_bytes=int(
                config.get("search_ids.max_result_bytes", MAX_RESULT_BYTES)
            ),
            max_total_bytes=int(
                config.get("search_ids.max_total_bytes", MAX_TOTAL_BYTES)
            ),
            avg_result_bytes=int(
                config.get("search_ids.avg_result_bytes", AVG_RESULT_BYTES)
            ),
        )


def score_row(row: Dict[str, Any], query: Optional[str]) -> float:
    """Score how well a row matches ``query``.

    Each string field containing the query (case-insensitive) earns 10
    points for an exact match or 1 for a substring match, plus 2 if the
    field is name, title or description. The sum is divided by 10 and
    capped at 1.0. Without a query every row scores 1.0.
    """
    if not query:
        return 1.0

    query_lower = query.lower()
    points = 0
    for key, value in row.items():
        if not isinstance(value, str) or not value:
            continue
        value_lower = value.lower()
        if query_lower not in value_lower:
            continue
        points += EXACT_MATCH_POINTS if value_lower == query_lower else SUBSTRING_MATCH_POINTS
        if key in BOOSTED_FIELDS:
            points += BOOSTED_FIELD_BONUS

    return min(1.0, points / 10)


class IdSearcher:
    """Fetches candidate rows and ranks their identifiers by relevance."""

    def __init__(self, client: SocrataClient, limits: Optional[IdSearchLimits] = None):
        self.client = client
        self.limits = limits or IdSearchLimits()

    def _check_request(self, limit: int, offset: int) -> None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidParams(f"limit must be a positive integer, got {limit!r}")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise InvalidParams(f"offset must be a non-negative integer, got {offset!r}")

        estimated = limit * self.limits.avg_result_bytes
        if estimated > self.limits.max_total_bytes:
            raise InvalidParams(
                f"Requested limit {limit} would exceed the response size limit "
                f"of {self.limits.max_total_bytes // (1024 * 1024)}MB "
                f"(estimated {estimated} bytes)"
            )

    async def search_ids(
        self,
        dataset_id: str,
        domain: str,
        query: Optional[str] = None,
        where: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> SearchIdsResponse:
        """Search a dataset and return ``{id, score}`` pairs, best first.

        Args:
            dataset_id: Dataset identifier
            domain: Portal hostname
            query: Full-text query; also drives scoring
            where: SoQL row filter
            limit: Maximum rows to consider
            offset: Offset of the first row

        Raises:
            InvalidParams: Malformed paging or a limit over the size budget
            RemoteFetchFailed: The row fetch failed
        """
        self._check_request(limit, offset)

        params: Dict[str, Any] = {"$limit": limit, "$offset": offset, "$select": ":*, *"}
        if query:
            params["$q"] = query
        if where:
            params["$where"] = where

        rows = await self.client.fetch(
            resource_path(dataset_id), params, base_url_for(domain)
        )
        rows = rows if isinstance(rows, list) else []

        results: List[SearchResult] = []
        total_size = 0
        for index, row in enumerate(rows):
            doc_id = extract_id(row)
            if doc_id is None:
                doc_id = positional_id(offset + index)
                logger.debug(f"No ID found for row {offset + index}, using {doc_id}")

            result = SearchResult(id=doc_id, score=score_row(row, query))
            size = serialized_size(result.to_dict())
            if size > self.limits.max_result_bytes:
                logger.warning(
                    f"Skipping oversized search result ({size} bytes > "
                    f"{self.limits.max_result_bytes} bytes)"
                )
                continue

            results.append(result)
            total_size += size
            if total_size > self.limits.max_total_bytes:
                logger.warning(
                    f"Total size limit reached, returning {len(results)} results"
                )
                break

        results.sort(key=lambda r: r.score, reverse=True)

        total_count = len(results)
        if len(rows) == limit:
            # A full page means there may be more matches
            try:
                counted = await count_rows(
                    self.client, dataset_id, domain, RowFilter(where=where, q=query)
                )
                total_count = counted or total_count
            except OpenGovError as e:
                logger.warning(f"Could not get total count for {dataset_id}: {e}")

        return SearchIdsResponse(results=results, total_count=total_count)
