"""Paginated dataset queries with sampling for large results.

For a dataset of unknown size the engine first counts the matching rows and
then picks one of three strategies:

- whole result: everything fits in one provider call, fetch it all
- explicit "all": page through in provider-sized batches up to the row-fetch
  cap, reporting a continuation offset when the cap cut the result short
- preview: the result is too large and the caller did not opt in, so return
  one bounded batch flagged ``is_sample`` with a continuation offset

A raw SoQL query bypasses counting entirely; it is sent as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

from opengov_mcp.core.client import SocrataClient, base_url_for, resource_path
from opengov_mcp.core.errors import InvalidParams
from opengov_mcp.core.filters import RowFilter
from opengov_mcp.core.row_count import count_rows
from opengov_mcp.utils.config import Config, get_row_fetch_cap
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

MAX_ROWS = 50_000
DEFAULT_PREVIEW_ROWS = 1_000

Row = Dict[str, Any]
Limit = Union[int, Literal["all"], None]


@dataclass
class SearchLimits:
    """Row limits for the engine.

    Attributes:
        max_rows: Provider per-call hard cap
        default_preview_rows: Preview size when the caller gives no limit
        row_fetch_cap: Ceiling for "all" requests; None reads ROW_FETCH_CAP
            from the environment on every request
    """

    max_rows: int = MAX_ROWS
    default_preview_rows: int = DEFAULT_PREVIEW_ROWS
    row_fetch_cap: Optional[int] = None

    def fetch_cap(self) -> int:
        if self.row_fetch_cap is not None:
            return self.row_fetch_cap
        return get_row_fetch_cap()

    @classmethod
    def from_config(cls, config: Config) -> SearchLimits:
        return cls(
            max_rows=int(config.get("socrata.max_rows", MAX_ROWS)),
            default_preview_rows=int(
                config.get("socrata.default_preview_rows", DEFAULT_PREVIEW_ROWS)
            ),
        )


@dataclass
class SearchResponse:
    """Rows plus the metadata needed to page through the rest."""

    data: List[Row]
    is_sample: bool
    returned_rows: int
    total_rows: int
    has_more: Optional[bool] = None
    next_offset: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "data": self.data,
            "is_sample": self.is_sample,
            "returned_rows": self.returned_rows,
            "total_rows": self.total_rows,
        }
        if self.has_more is not None:
            result["has_more"] = self.has_more
        if self.next_offset is not None:
            result["next_offset"] = self.next_offset
        return result


def _validate_paging(limit: Limit, offset: int) -> None:
    if limit is not None and limit != "all":
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidParams(
                f"limit must be a positive integer or 'all', got {limit!r}"
            )
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise InvalidParams(f"offset must be a non-negative integer, got {offset!r}")


class SearchEngine:
    """Decides how many rows to fetch for a dataset query and fetches them."""

    def __init__(self, client: SocrataClient, limits: Optional[SearchLimits] = None):
        self.client = client
        self.limits = limits or SearchLimits()

    async def _fetch_rows(
        self, dataset_id: str, domain: str, params: Dict[str, Any]
    ) -> List[Row]:
        rows = await self.client.fetch(
            resource_path(dataset_id), params, base_url_for(domain)
        )
        return rows if isinstance(rows, list) else []

    async def _fetch_page(
        self,
        dataset_id: str,
        domain: str,
        row_filter: RowFilter,
        limit: int,
        offset: int,
    ) -> List[Row]:
        params = {"$limit": limit, "$offset": offset, **row_filter.to_params()}
        return await self._fetch_rows(dataset_id, domain, params)

    async def search(
        self,
        dataset_id: str,
        domain: str,
        row_filter: Optional[RowFilter] = None,
        limit: Limit = None,
        offset: int = 0,
    ) -> SearchResponse:
        """Query a dataset, returning the full result or a bounded preview.

        Args:
            dataset_id: Dataset identifier (e.g. ``6zsd-86xi``)
            domain: Portal hostname
            row_filter: Row filter; a raw SoQL query disables paging logic
            limit: Row limit, ``"all"`` to page through the whole result
                (bounded by the row-fetch cap), or None for the default
            offset: Offset of the first row to return

        Returns:
            SearchResponse

        Raises:
            InvalidParams: Malformed limit or offset
            RemoteFetchFailed: Any underlying fetch failed
        """
        row_filter = row_filter or RowFilter()
        _validate_paging(limit, offset)
        max_rows = self.limits.max_rows

        if row_filter.is_raw_query:
            data = await self._fetch_rows(dataset_id, domain, row_filter.to_params())
            # Hitting the provider cap suggests the query was truncated upstream
            return SearchResponse(
                data=data,
                is_sample=False,
                returned_rows=len(data),
                total_rows=len(data),
                has_more=len(data) == max_rows,
            )

        total_rows = await count_rows(self.client, dataset_id, domain, row_filter)
        request_all = limit == "all"
        user_limit = None if request_all else limit

        if total_rows <= max_rows and not request_all:
            # Every matching row fits one call; a larger limit is not a cut
            fetch_limit = min(
                user_limit if user_limit is not None else total_rows, max_rows
            )
            if total_rows == 0:
                data: List[Row] = []
            else:
                data = await self._fetch_page(
                    dataset_id, domain, row_filter, fetch_limit, offset
                )
            return SearchResponse(
                data=data,
                is_sample=False,
                returned_rows=len(data),
                total_rows=total_rows,
            )

        if request_all:
            return await self._fetch_all(
                dataset_id, domain, row_filter, total_rows, offset
            )

        preview_limit = min(
            user_limit if user_limit is not None else self.limits.default_preview_rows,
            max_rows,
        )
        data = await self._fetch_page(
            dataset_id, domain, row_filter, preview_limit, offset
        )
        end = offset + len(data)
        has_more = end < total_rows
        logger.info(
            f"Returning {len(data)}-row preview of {total_rows} rows for {dataset_id}",
            extra={"event": "search_preview", "dataset_id": dataset_id},
        )
        return SearchResponse(
            data=data,
            is_sample=True,
            returned_rows=len(data),
            total_rows=total_rows,
            has_more=has_more,
            next_offset=end if has_more else None,
        )

    async def _fetch_all(
        self,
        dataset_id: str,
        domain: str,
        row_filter: RowFilter,
        total_rows: int,
        offset: int,
    ) -> SearchResponse:
        row_fetch_cap = self.limits.fetch_cap()
        max_to_fetch = min(total_rows, row_fetch_cap)
        collected: List[Row] = []
        current_offset = offset

        while len(collected) < max_to_fetch and current_offset < total_rows:
            batch_size = min(self.limits.max_rows, max_to_fetch - len(collected))
            batch = await self._fetch_page(
                dataset_id, domain, row_filter, batch_size, current_offset
            )
            if not batch:
                # Count and data disagree; stop instead of looping forever
                break
            collected.extend(batch)
            current_offset += len(batch)
            logger.debug(
                f"Fetched batch of {len(batch)} rows for {dataset_id} "
                f"({len(collected)}/{max_to_fetch})"
            )

        has_more = total_rows > row_fetch_cap
        if has_more:
            logger.warning(
                f"Row fetch cap {row_fetch_cap} reached for {dataset_id} "
                f"({total_rows} rows available)"
            )
        return SearchResponse(
            data=collected,
            is_sample=False,
            returned_rows=len(collected),
            total_rows=total_rows,
            has_more=has_more,
            next_offset=current_offset if has_more else None,
        )
