"""Row filter value object and its SoQL query-string mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

# RowFilter field -> SoQL query-string key
SOQL_KEYS = {
    "select": "$select",
    "where": "$where",
    "order": "$order",
    "group": "$group",
    "having": "$having",
    "q": "$q",
}


@dataclass(frozen=True)
class RowFilter:
    """Filter applied to a dataset row query.

    Attributes:
        select: Columns to return
        where: Row filter expression (e.g. ``magnitude > 3.0``)
        order: Sort expression (e.g. ``date DESC``)
        group: Grouping for aggregates
        having: Filter over grouped rows
        q: Full-text search across the dataset
        soql_query: Complete SoQL query; when set, every other field is
            ignored and paging must be embedded in the query itself
    """

    select: Optional[str] = None
    where: Optional[str] = None
    order: Optional[str] = None
    group: Optional[str] = None
    having: Optional[str] = None
    q: Optional[str] = None
    soql_query: Optional[str] = None

    @property
    def is_raw_query(self) -> bool:
        return bool(self.soql_query and self.soql_query.strip())

    def to_params(self) -> Dict[str, Any]:
        """SoQL parameters for a row fetch (without paging)."""
        if self.is_raw_query:
            return {"$query": self.soql_query}
        return {
            key: getattr(self, attr)
            for attr, key in SOQL_KEYS.items()
            if getattr(self, attr)
        }

    def count_params(self) -> Dict[str, Any]:
        """SoQL parameters for a count-only query.

        Only ``where`` and ``q`` narrow the count; projection, ordering and
        grouping are left out.
        """
        params: Dict[str, Any] = {"$select": "count(*)", "$limit": 1}
        if self.where:
            params["$where"] = self.where
        if self.q:
            params["$q"] = self.q
        return params

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> RowFilter:
        """Build a filter from tool arguments.

        ``soqlQuery`` takes precedence over ``query`` as the raw SoQL string.
        """
        return cls(
            select=args.get("select") or None,
            where=args.get("where") or None,
            order=args.get("order") or None,
            group=args.get("group") or None,
            having=args.get("having") or None,
            q=args.get("q") or None,
            soql_query=args.get("soqlQuery") or args.get("query") or None,
        )
