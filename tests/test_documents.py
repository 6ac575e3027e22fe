"""Tests for document retrieval and row size enforcement."""

import pytest
from conftest import FakeClient, FakeDataset, make_rows

from opengov_mcp.core.cache import LRUCache
from opengov_mcp.core.documents import (
    TRUNCATION_MARKER,
    DocumentLimits,
    DocumentRetriever,
    build_id_filter,
    cache_key,
    enforce_row_size,
)
from opengov_mcp.core.errors import InvalidParams, RemoteApiError, RemoteFetchFailed
from opengov_mcp.core.identifiers import extract_id, find_id_field, parse_positional_id


def make_retriever(client, **limits) -> DocumentRetriever:
    return DocumentRetriever(client, LRUCache(), DocumentLimits(**limits))


def test_build_id_filter_single_and_many():
    assert build_id_filter(["a"]) == ":id = 'a'"
    assert build_id_filter(["a", "b"], "uid") == "uid IN ('a','b')"
    assert build_id_filter([]) == ""


def test_build_id_filter_escapes_quotes():
    assert build_id_filter(["o'brien"]) == ":id = 'o''brien'"


def test_cache_key_ignores_id_order():
    assert cache_key("ds", ["b", "a"]) == cache_key("ds", ["a", "b"])
    assert cache_key("ds", ["a"]) != cache_key("other", ["a"])


def test_identifier_helpers():
    assert find_id_field({"uid": "x", "id": "y"}) == "id"
    assert find_id_field({"name": "x"}) is None
    assert extract_id({":id": "", "_id": 7}) == "7"
    assert extract_id({"name": "x"}) is None
    assert parse_positional_id("row_12") == 12
    assert parse_positional_id("row_") is None
    assert parse_positional_id("row_1a") is None


def test_small_row_is_returned_unchanged():
    row = {"a": "b"}
    assert enforce_row_size(row) is row


def test_oversized_row_truncates_strings_and_arrays():
    row = {
        "text": "x" * 5000,
        "items": list(range(500)),
        "short": "ok",
    }

    result = enforce_row_size(row, max_bytes=1024)

    assert result["text"] == "x" * 1000 + TRUNCATION_MARKER
    assert result["items"] == list(range(10))
    assert result["items_truncated"] is True
    assert result["short"] == "ok"
    assert result["_truncated"] is True
    assert "_truncated" not in row


async def test_too_many_ids_is_rejected(dataset_client):
    retriever = make_retriever(dataset_client([]), max_docs_per_request=2)
    with pytest.raises(InvalidParams):
        await retriever.retrieve(["a", "b", "c"], "abcd-1234", "data.city.gov")


async def test_empty_ids_returns_empty_without_fetching(dataset_client):
    client = dataset_client(make_rows(3))
    retriever = make_retriever(client)

    assert await retriever.retrieve([], "abcd-1234", "data.city.gov") == []
    assert client.calls == []


async def test_regular_ids_use_detected_field(dataset_client):
    client = dataset_client(make_rows(5))
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["id-1", "id-3"], "abcd-1234", "data.city.gov")

    assert [d[":id"] for d in docs] == ["id-1", "id-3"]
    probe, fetch = client.calls
    assert probe[1] == {"$limit": 1}
    assert fetch[1] == {"$where": ":id IN ('id-1','id-3')", "$limit": 50_000}


async def test_alternate_id_field_is_detected(dataset_client):
    rows = [{"uid": f"u{i}", "name": f"n{i}"} for i in range(3)]
    client = dataset_client(rows)
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["u2"], "abcd-1234", "data.city.gov")

    assert docs == [{"uid": "u2", "name": "n2"}]
    assert client.calls[1][1]["$where"] == "uid = 'u2'"


async def test_failed_probe_falls_back_to_default_field():
    dataset = FakeDataset(make_rows(3))

    def responder(path, params):
        if params == {"$limit": 1}:
            return RemoteApiError(500, "Internal Server Error", "")
        return dataset(path, params)

    client = FakeClient(responder)
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["id-0"], "abcd-1234", "data.city.gov")

    assert [d[":id"] for d in docs] == ["id-0"]


async def test_positional_ids_fetch_one_contiguous_range(dataset_client):
    client = dataset_client(make_rows(10, with_id=False))
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["row_5", "row_2", "row_2"], "abcd-1234", "data.city.gov")

    assert [d["value"] for d in docs] == ["2", "5"]
    assert client.calls == [
        ("/resource/abcd-1234.json", {"$offset": 2, "$limit": 4}, "https://data.city.gov")
    ]


async def test_positional_ids_beyond_dataset_are_omitted(dataset_client):
    client = dataset_client(make_rows(10, with_id=False))
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["row_1", "row_50"], "abcd-1234", "data.city.gov")

    assert [d["value"] for d in docs] == ["1"]


async def test_regular_rows_come_before_positional_rows(dataset_client):
    client = dataset_client(make_rows(6))
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["row_0", "id-4"], "abcd-1234", "data.city.gov")

    assert [d[":id"] for d in docs] == ["id-4", "id-0"]


async def test_malformed_positional_id_is_treated_as_regular(dataset_client):
    rows = [{":id": "row_x", "name": "odd"}]
    client = dataset_client(rows)
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["row_x"], "abcd-1234", "data.city.gov")

    assert docs == rows


async def test_repeat_request_is_served_from_cache(dataset_client):
    client = dataset_client(make_rows(5))
    retriever = make_retriever(client)

    first = await retriever.retrieve(["id-1", "id-2"], "abcd-1234", "data.city.gov")
    calls = len(client.calls)
    second = await retriever.retrieve(["id-2", "id-1"], "abcd-1234", "data.city.gov")

    assert second == first
    assert len(client.calls) == calls


async def test_partial_results_returned_when_later_fetch_fails():
    dataset = FakeDataset(make_rows(5))

    def responder(path, params):
        if "$offset" in params:
            return RemoteApiError(503, "Service Unavailable", "")
        return dataset(path, params)

    client = FakeClient(responder)
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["id-1", "row_3"], "abcd-1234", "data.city.gov")

    assert [d[":id"] for d in docs] == ["id-1"]
    assert len(retriever.cache) == 0


async def test_failure_without_results_raises():
    client = FakeClient(lambda path, params: RemoteApiError(404, "Not Found", ""))
    retriever = make_retriever(client)

    with pytest.raises(RemoteFetchFailed):
        await retriever.retrieve(["row_1"], "abcd-1234", "data.city.gov")


async def test_oversized_rows_are_truncated(dataset_client):
    rows = [{":id": "big", "text": "y" * 5000}]
    client = dataset_client(rows)
    retriever = make_retriever(client, max_row_bytes=1024)

    docs = await retriever.retrieve(["big"], "abcd-1234", "data.city.gov")

    assert docs[0]["_truncated"] is True
    assert docs[0]["text"].endswith(TRUNCATION_MARKER)


async def test_request_size_boundary(dataset_client):
    client = dataset_client(make_rows(60))
    retriever = make_retriever(client)
    ids = [f"id-{i}" for i in range(51)]

    with pytest.raises(InvalidParams):
        await retriever.retrieve(ids, "abcd-1234", "data.city.gov")

    docs = await retriever.retrieve(ids[:50], "abcd-1234", "data.city.gov")
    assert len(docs) == 50


async def test_non_list_body_yields_no_rows():
    client = FakeClient(lambda path, params: {"error": "unexpected"})
    retriever = make_retriever(client)

    docs = await retriever.retrieve(["id-1", "row_2"], "abcd-1234", "data.city.gov")

    assert docs == []


async def test_cached_documents_are_not_shared(dataset_client):
    client = dataset_client(make_rows(3))
    retriever = make_retriever(client)

    first = await retriever.retrieve(["id-1"], "abcd-1234", "data.city.gov")
    first.clear()
    second = await retriever.retrieve(["id-1"], "abcd-1234", "data.city.gov")

    assert [d[":id"] for d in second] == ["id-1"]
