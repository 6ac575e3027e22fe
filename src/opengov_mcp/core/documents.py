"""Retrieve dataset rows by identifier, with caching and size limits."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from opengov_mcp.core.cache import LRUCache, serialized_size
from opengov_mcp.core.client import SocrataClient, base_url_for, resource_path
from opengov_mcp.core.errors import InternalError, InvalidParams, OpenGovError
from opengov_mcp.core.identifiers import (
    DEFAULT_ID_FIELD,
    find_id_field,
    parse_positional_id,
)
from opengov_mcp.core.search import MAX_ROWS
from opengov_mcp.utils.config import Config
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

Row = Dict[str, Any]

MAX_DOCS_PER_REQUEST = 50
MAX_ROW_BYTES = 20 * 1024

TRUNCATION_MARKER = "... [truncated]"
MAX_STRING_CHARS = 1000
MAX_ARRAY_ITEMS = 10


def enforce_row_size(row: Row, max_bytes: int = MAX_ROW_BYTES) -> Row:
    """Shrink an oversized row by truncating long strings and arrays.

    Rows within budget are returned unchanged. Otherwise a copy is returned
    with strings cut to 1000 characters, arrays cut to 10 items (flagged by
    ``<field>_truncated``) and ``_truncated`` set. The copy is not
    guaranteed to fit the budget.
    """
    size = serialized_size(row)
    if size <= max_bytes:
        return row

    logger.warning(
        f"Row size {size / 1024:.2f}KB exceeds limit of {max_bytes / 1024:.2f}KB, truncating"
    )
    truncated = dict(row)
    for key, value in row.items():
        if isinstance(value, str) and len(value) > MAX_STRING_CHARS:
            truncated[key] = value[:MAX_STRING_CHARS] + TRUNCATION_MARKER
        elif isinstance(value, list) and len(value) > MAX_ARRAY_ITEMS:
            truncated[key] = value[:MAX_ARRAY_ITEMS]
            truncated[f"{key}_truncated"] = True

    truncated["_truncated"] = True
    return truncated


def _quote(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def build_id_filter(ids: Sequence[str], id_field: str = DEFAULT_ID_FIELD) -> str:
    """SoQL ``where`` clause matching rows whose ``id_field`` is in ``ids``."""
    if not ids:
        return ""
    quoted = [_quote(doc_id) for doc_id in ids]
    if len(quoted) == 1:
        return f"{id_field} = {quoted[0]}"
    return f"{id_field} IN ({','.join(quoted)})"


def cache_key(dataset_id: str, ids: Sequence[str]) -> str:
    """Cache key independent of the order ids were given in."""
    return f"{dataset_id}:{json.dumps(sorted(ids), separators=(',', ':'))}"


@dataclass
class DocumentLimits:
    max_docs_per_request: int = MAX_DOCS_PER_REQUEST
    max_row_bytes: int = MAX_ROW_BYTES
    max_rows_per_call: int = MAX_ROWS

    @classmethod
    def from_config(cls, config: Config) -> DocumentLimits:
        return cls(
            max_docs_per_request=int(
                config.get("documents.max_docs_per_request", MAX_DOCS_PER_REQUEST)
            ),
            max_row_bytes=int(config.get("documents.max_row_bytes", MAX_ROW_BYTES)),
            max_rows_per_call=int(config.get("socrata.max_rows", MAX_ROWS)),
        )


class DocumentRetriever:
    """Resolves document ids to dataset rows.

    Ids are either provider identifiers (matched against the dataset's
    identifier field) or positional ``row_<offset>`` ids. Results are cached
    per dataset and id set.
    """

    def __init__(
        self,
        client: SocrataClient,
        cache: LRUCache[List[Row]],
        limits: Optional[DocumentLimits] = None,
    ):
        self.client = client
        self.cache = cache
        self.limits = limits or DocumentLimits()

    async def detect_id_field(self, dataset_id: str, domain: str) -> str:
        """Sample one row to find the dataset's identifier field.

        Best-effort: an empty sample or a failed probe yields ``:id``.
        """
        try:
            sample = await self.client.fetch(
                resource_path(dataset_id), {"$limit": 1}, base_url_for(domain)
            )
        except OpenGovError as e:
            logger.warning(f"Could not detect ID field for {dataset_id}: {e}")
            return DEFAULT_ID_FIELD

        if not isinstance(sample, list) or not sample or not isinstance(sample[0], dict):
            return DEFAULT_ID_FIELD
        return find_id_field(sample[0]) or DEFAULT_ID_FIELD

    async def retrieve(
        self, ids: Sequence[str], dataset_id: str, domain: str
    ) -> List[Row]:
        """Fetch the rows for ``ids``.

        Returns:
            Rows in fetch order: identifier matches first, then positional
            rows by ascending offset. Positional ids beyond the fetched range
            are omitted.

        Raises:
            InvalidParams: More ids than ``max_docs_per_request``
            RemoteFetchFailed: Fetch failed before any row was collected
            InternalError: Unexpected local failure before any row was
                collected
        """
        max_docs = self.limits.max_docs_per_request
        if len(ids) > max_docs:
            raise InvalidParams(
                f"Cannot retrieve more than {max_docs} documents at once. "
                f"Requested: {len(ids)}"
            )
        if not ids:
            return []

        key = cache_key(dataset_id, ids)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Document cache hit for {dataset_id} ({len(ids)} ids)")
            return list(cached)

        logger.debug(f"Document cache miss for {dataset_id}, fetching from Socrata")
        documents: List[Row] = []

        try:
            await self._collect(ids, dataset_id, domain, documents)
        except Exception as e:
            logger.error(f"Error fetching documents from {dataset_id}: {e}")
            if documents:
                logger.warning(f"Returning {len(documents)} partial documents")
                return documents
            if isinstance(e, OpenGovError):
                raise
            raise InternalError(f"Document retrieval failed: {e}") from e

        self.cache.set(key, documents)
        return list(documents)

    async def _collect(
        self,
        ids: Sequence[str],
        dataset_id: str,
        domain: str,
        documents: List[Row],
    ) -> None:
        offsets: List[int] = []
        regular_ids: List[str] = []
        for doc_id in ids:
            offset = parse_positional_id(doc_id)
            if offset is None:
                regular_ids.append(doc_id)
            else:
                offsets.append(offset)

        base_url = base_url_for(domain)
        path = resource_path(dataset_id)
        max_row_bytes = self.limits.max_row_bytes

        if regular_ids:
            id_field = await self.detect_id_field(dataset_id, domain)
            rows = await self.client.fetch(
                path,
                {
                    "$where": build_id_filter(regular_ids, id_field),
                    "$limit": self.limits.max_rows_per_call,
                },
                base_url,
            )
            if not isinstance(rows, list):
                rows = []
            for row in rows:
                documents.append(enforce_row_size(row, max_row_bytes))

        if offsets:
            offsets = sorted(set(offsets))
            first, last = offsets[0], offsets[-1]
            span = min(last - first + 1, self.limits.max_rows_per_call)
            rows = await self.client.fetch(
                path, {"$offset": first, "$limit": span}, base_url
            )
            if not isinstance(rows, list):
                rows = []
            for offset in offsets:
                index = offset - first
                if index < len(rows):
                    documents.append(enforce_row_size(rows[index], max_row_bytes))
                else:
                    logger.debug(f"Offset {offset} outside fetched range, skipping")
