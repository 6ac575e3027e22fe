"""Tests for catalog lookups and portal info."""

import pytest
from conftest import FakeClient

from opengov_mcp.core.catalog import CatalogService
from opengov_mcp.core.errors import RemoteApiError, RemoteApiUnreachable
from opengov_mcp.core.portal_info import clean_title, get_portal_info


async def test_catalog_passes_search_context():
    client = FakeClient(lambda path, params: {"results": [{"resource": {"id": "x"}}]})
    service = CatalogService(client)

    results = await service.catalog("data.city.gov", query="parks", limit=5, offset=10)

    assert results == [{"resource": {"id": "x"}}]
    path, params, base_url = client.calls[0]
    assert path == "/api/catalog/v1"
    assert base_url == "https://data.city.gov"
    assert params == {
        "limit": 5,
        "offset": 10,
        "search_context": "data.city.gov",
        "q": "parks",
    }


async def test_categories_use_primary_endpoint():
    client = FakeClient(lambda path, params: [{"category": "Health", "count": 3}])
    service = CatalogService(client)

    assert await service.categories("data.city.gov") == [{"category": "Health", "count": 3}]
    assert client.calls[0][0] == "/api/catalog/v1/domain_categories"
    assert len(client.calls) == 1


async def test_empty_primary_falls_back_to_only_param():
    def responder(path, params):
        if path.endswith("domain_tags"):
            return []
        return {"tags": [{"tag": "parks", "count": 2}]}

    client = FakeClient(responder)
    service = CatalogService(client)

    assert await service.tags("data.city.gov") == [{"tag": "parks", "count": 2}]
    assert client.calls[1][1] == {"search_context": "data.city.gov", "only": "tags"}


async def test_failed_primary_falls_back_to_only_param():
    def responder(path, params):
        if path.endswith("domain_categories"):
            return RemoteApiError(404, "Not Found", "")
        return {"categories": [{"category": "Transport", "count": 1}]}

    service = CatalogService(FakeClient(responder))

    assert await service.categories("data.city.gov") == [
        {"category": "Transport", "count": 1}
    ]


async def test_both_failing_raises_primary_error():
    primary = RemoteApiError(404, "Not Found", "")

    def responder(path, params):
        if path.endswith("domain_categories"):
            return primary
        return RemoteApiUnreachable("timeout")

    service = CatalogService(FakeClient(responder))

    with pytest.raises(RemoteApiError) as exc_info:
        await service.categories("data.city.gov")
    assert exc_info.value is primary


async def test_view_endpoints():
    client = FakeClient(lambda path, params: {"path": path})
    service = CatalogService(client)

    assert await service.dataset_metadata("abcd-1234", "data.city.gov") == {
        "path": "/api/views/abcd-1234"
    }
    assert await service.column_info("abcd-1234", "data.city.gov") == {
        "path": "/api/views/abcd-1234/columns"
    }
    assert await service.site_metrics("data.city.gov") == {
        "path": "/api/site_metrics.json"
    }


def test_clean_title_removes_repeated_segments():
    assert clean_title(" City Data | Open Data | City Data ") == "City Data | Open Data"


async def test_portal_info_reads_title():
    client = FakeClient(lambda path, params: None)
    client.pages["https://data.city.gov"] = "<html><TITLE>City | City</TITLE></html>"

    info = await get_portal_info(client, "https://data.city.gov")

    assert info.title == "City"
    assert info.url == "https://data.city.gov"


async def test_portal_info_falls_back_on_failure():
    client = FakeClient(lambda path, params: None)
    client.pages["https://data.city.gov"] = RemoteApiUnreachable("timeout")

    info = await get_portal_info(client, "data.city.gov")

    assert info.to_dict() == {"title": "Data Portal", "url": "data.city.gov"}
