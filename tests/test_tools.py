"""Tests for the MCP tool handlers."""

import json

import pytest
from conftest import FakeClient, FakeDataset, make_rows
from mcp.types import Tool

from opengov_mcp.core.cache import CacheCleanupTask, LRUCache
from opengov_mcp.core.catalog import CatalogService
from opengov_mcp.core.documents import DocumentRetriever
from opengov_mcp.core.errors import ErrorCode, InvalidParams
from opengov_mcp.core.search import SearchEngine, SearchLimits
from opengov_mcp.core.search_ids import IdSearcher
from opengov_mcp.mcp.services import Services
from opengov_mcp.mcp.tools import TOOL_SPECS, ToolError, run_tool


def make_services(client) -> Services:
    cache = LRUCache()
    return Services(
        client=client,
        cache=cache,
        cleanup=CacheCleanupTask(cache),
        search=SearchEngine(client, SearchLimits(max_rows=10, default_preview_rows=4)),
        documents=DocumentRetriever(client, cache),
        id_search=IdSearcher(client),
        catalog=CatalogService(client),
    )


def payload(content):
    assert len(content) == 1
    return json.loads(content[0].text)


def test_tool_specs_are_valid():
    tools = [Tool(**spec) for spec in TOOL_SPECS]
    assert [t.name for t in tools] == ["get_data", "search", "fetch"]


async def test_catalog_uses_default_domain(monkeypatch):
    monkeypatch.setenv("DATA_PORTAL_URL", "https://data.city.gov")
    client = FakeClient(lambda path, params: {"results": [{"name": "Parks"}]})

    result = await run_tool(
        "get_data", {"type": "catalog", "query": "parks"}, make_services(client)
    )

    assert payload(result) == [{"name": "Parks"}]
    _, params, base_url = client.calls[0]
    assert base_url == "https://data.city.gov"
    assert params["limit"] == 10


async def test_explicit_domain_wins_over_default(monkeypatch):
    monkeypatch.setenv("DATA_PORTAL_URL", "data.city.gov")
    client = FakeClient(lambda path, params: {})

    await run_tool(
        "get_data",
        {"type": "site-metrics", "domain": "data.other.gov"},
        make_services(client),
    )

    assert client.calls[0][2] == "https://data.other.gov"


async def test_missing_domain_is_rejected():
    client = FakeClient(lambda path, params: {})
    with pytest.raises(InvalidParams):
        await run_tool("get_data", {"type": "tags"}, make_services(client))


async def test_data_access_pages_through_all_rows():
    client = FakeClient(FakeDataset(make_rows(23)))

    result = await run_tool(
        "get_data",
        {
            "type": "data-access",
            "datasetId": "abcd-1234",
            "domain": "data.city.gov",
            "limit": "all",
        },
        make_services(client),
    )

    body = payload(result)
    assert body["returned_rows"] == 23
    assert body["is_sample"] is False


async def test_data_access_returns_preview_by_default():
    client = FakeClient(FakeDataset(make_rows(30)))

    result = await run_tool(
        "get_data",
        {"type": "data-access", "datasetId": "abcd-1234", "domain": "data.city.gov"},
        make_services(client),
    )

    body = payload(result)
    assert body["is_sample"] is True
    assert body["next_offset"] == 4


async def test_data_access_accepts_query_alias():
    client = FakeClient(FakeDataset(make_rows(3)))

    await run_tool(
        "get_data",
        {
            "type": "data-access",
            "datasetId": "abcd-1234",
            "domain": "data.city.gov",
            "query": "SELECT name",
        },
        make_services(client),
    )

    assert client.calls == [
        ("/resource/abcd-1234.json", {"$query": "SELECT name"}, "https://data.city.gov")
    ]


@pytest.mark.parametrize("operation", ["dataset-metadata", "column-info", "data-access"])
async def test_dataset_operations_require_dataset_id(operation):
    client = FakeClient(lambda path, params: {})
    with pytest.raises(InvalidParams, match="datasetId"):
        await run_tool(
            "get_data",
            {"type": operation, "domain": "data.city.gov"},
            make_services(client),
        )


async def test_unknown_operation_type_is_rejected():
    client = FakeClient(lambda path, params: {})
    with pytest.raises(InvalidParams, match="Unknown operation type"):
        await run_tool(
            "get_data", {"type": "explode", "domain": "x.gov"}, make_services(client)
        )


async def test_search_tool_returns_ids_and_count():
    client = FakeClient(FakeDataset(make_rows(3)))

    result = await run_tool(
        "search",
        {"datasetId": "abcd-1234", "domain": "data.city.gov", "query": "row 1"},
        make_services(client),
    )

    body = payload(result)
    assert body["total_count"] == 3
    assert body["results"][0] == {"id": "id-1", "score": 1.0}


async def test_fetch_tool_returns_rows():
    client = FakeClient(FakeDataset(make_rows(3)))

    result = await run_tool(
        "fetch",
        {"ids": ["id-2"], "datasetId": "abcd-1234", "domain": "data.city.gov"},
        make_services(client),
    )

    assert payload(result) == [{"name": "row 2", "value": "2", ":id": "id-2"}]


async def test_fetch_tool_validates_ids():
    client = FakeClient(lambda path, params: [])
    with pytest.raises(InvalidParams):
        await run_tool(
            "fetch",
            {"ids": "id-1", "datasetId": "abcd-1234", "domain": "data.city.gov"},
            make_services(client),
        )


async def test_unknown_tool_is_rejected():
    client = FakeClient(lambda path, params: [])
    with pytest.raises(InvalidParams, match="Unknown tool"):
        await run_tool("nope", {}, make_services(client))


def test_tool_error_message_is_error_payload():
    error = ToolError(InvalidParams("limit must be positive"))
    body = json.loads(str(error))

    assert body["error"] == "limit must be positive"
    assert body["code"] == ErrorCode.INVALID_PARAMS
    assert body["type"] == "InvalidParams"
