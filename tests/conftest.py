"""Shared fixtures: an in-memory stand-in for the Socrata client."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from opengov_mcp.utils.config import set_config


class FakeClient:
    """Records every fetch and answers from a responder callable.

    The responder gets ``(path, params)``; returning an exception instance
    raises it from ``fetch``.
    """

    def __init__(self, responder: Callable[[str, dict[str, Any]], Any]):
        self.responder = responder
        self.calls: list[tuple[str, dict[str, Any], str]] = []
        self.pages: dict[str, Any] = {}
        self.closed = False

    async def fetch(self, path: str, params: Any = None, base_url: str = "") -> Any:
        query = {k: v for k, v in dict(params or {}).items() if v is not None}
        self.calls.append((path, query, base_url))
        result = self.responder(path, query)
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_text(self, url: str) -> str:
        self.calls.append((url, {}, ""))
        result = self.pages.get(url)
        if isinstance(result, Exception):
            raise result
        return result or ""

    async def aclose(self) -> None:
        self.closed = True

    def row_calls(self) -> list[dict[str, Any]]:
        """Params of row fetches, excluding count queries."""
        return [
            params
            for path, params, _ in self.calls
            if path.startswith("/resource/") and params.get("$select") != "count(*)"
        ]


class FakeDataset:
    """Responder serving a fixed list of rows with SoQL paging.

    Supports ``count(*)`` queries and ``$offset``/``$limit`` slicing. A
    ``$where`` of the form ``field = 'v'`` or ``field IN ('a','b')`` is
    applied; other clauses are ignored.
    """

    def __init__(self, rows: list[dict[str, Any]], count: int | None = None):
        self.rows = rows
        self.count = count

    def _filter(self, rows: list[dict[str, Any]], where: str | None) -> list[dict[str, Any]]:
        if not where:
            return rows
        if " IN (" in where:
            field, values = where.split(" IN (", 1)
            wanted = {v.strip().strip("'") for v in values.rstrip(")").split(",")}
        elif " = " in where:
            field, value = where.split(" = ", 1)
            wanted = {value.strip().strip("'")}
        else:
            return rows
        field = field.strip()
        return [r for r in rows if str(r.get(field)) in wanted]

    def __call__(self, path: str, params: dict[str, Any]) -> Any:
        rows = self._filter(self.rows, params.get("$where"))
        if params.get("$select") == "count(*)":
            total = self.count if self.count is not None else len(rows)
            return [{"count": str(total)}]
        offset = int(params.get("$offset", 0))
        limit = int(params.get("$limit", 1000))
        return rows[offset : offset + limit]


def make_rows(n: int, with_id: bool = True) -> list[dict[str, Any]]:
    rows = []
    for i in range(n):
        row: dict[str, Any] = {"name": f"row {i}", "value": str(i)}
        if with_id:
            row[":id"] = f"id-{i}"
        rows.append(row)
    return rows


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep process env and global config from leaking between tests."""
    monkeypatch.delenv("DATA_PORTAL_URL", raising=False)
    monkeypatch.delenv("ROW_FETCH_CAP", raising=False)
    monkeypatch.delenv("OPENGOV_MCP_CONFIG", raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def dataset_client():
    """Factory building a FakeClient over a FakeDataset."""

    def _make(rows: list[dict[str, Any]], count: int | None = None) -> FakeClient:
        return FakeClient(FakeDataset(rows, count))

    return _make
