"""Tests for the OpenSearch adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from opensearchpy.exceptions import ConnectionError as OpenSearchConnectionError
from opensearchpy.exceptions import NotFoundError, RequestError

from querybridge.adapters.base.exceptions import ConnectionError
from querybridge.adapters.opensearch.adapter import OpenSearchAdapter
from querybridge.models.result import ErrorKind


@pytest.fixture
def adapter() -> OpenSearchAdapter:
    return OpenSearchAdapter(hosts=["http://localhost:9200"], index="user", default_search_fields=["name", "lastname"])


@pytest.fixture
def client(adapter: OpenSearchAdapter) -> AsyncMock:
    mock_client = AsyncMock()
    adapter._client = mock_client
    return mock_client


class TestOpenSearchAdapter:
    def test_name(self, adapter: OpenSearchAdapter) -> None:
        assert adapter.name == "opensearch"

    async def test_connect(self) -> None:
        mock_client = MagicMock()
        mock_client.info = AsyncMock(return_value={"cluster_name": "os", "version": {"number": "2.13.0"}})
        with patch("querybridge.adapters.opensearch.adapter.AsyncOpenSearch", return_value=mock_client) as os_class:
            adapter = OpenSearchAdapter(hosts=["http://os:9200"], timeout=3, http_auth=("admin", "admin"))
            await adapter.connect()

        os_class.assert_called_once_with(hosts=["http://os:9200"], timeout=3, http_auth=("admin", "admin"))
        assert adapter.is_connected

    async def test_connect_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.info = AsyncMock(side_effect=OpenSearchConnectionError("N/A", "refused", Exception("refused")))
        mock_client.close = AsyncMock()
        with patch("querybridge.adapters.opensearch.adapter.AsyncOpenSearch", return_value=mock_client):
            with pytest.raises(ConnectionError, match="Failed to connect to OpenSearch"):
                await OpenSearchAdapter().connect()
        mock_client.close.assert_awaited_once()

    async def test_find_sends_body(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.search.return_value = {"hits": {"hits": [{"_id": "x1", "_source": {"name": "Leia"}}]}}

        result = await adapter.find({"query": {"term": {"age": 33}}, "search": "Leia", "sort": "-age"})

        assert result.unwrap_records() == [{"name": "Leia", "_id": "x1"}]
        client.search.assert_awaited_once_with(
            index="user",
            body={
                "sort": [{"age": "desc"}],
                "query": {
                    "bool": {
                        "filter": [{"term": {"age": 33}}],
                        "must": [{"multi_match": {"query": "Leia", "fields": ["name", "lastname"]}}],
                    }
                },
            },
            track_total_hits=True,
        )

    async def test_request_error_root_cause(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.search.side_effect = RequestError(
            400,
            "search_phase_execution_exception",
            {"error": {"root_cause": [{"reason": "failed to parse query"}], "reason": "all shards failed"}},
        )

        result = await adapter.find({"query": {"bogus": {}}})

        assert result.error is not None
        assert result.error.kind is ErrorKind.BACKEND_QUERY
        assert result.error.status == 400
        assert result.error.message == "[400 Bad Request] error executing search. root cause: failed to parse query"

    async def test_connection_error(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.count.side_effect = OpenSearchConnectionError("N/A", "refused", Exception("refused"))

        result = await adapter.count()

        assert result.error is not None
        assert result.error.kind is ErrorKind.CONNECTION
        assert result.error.message.startswith("error counting documents:")

    async def test_insert(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.index.side_effect = lambda **kw: {"_id": kw["id"], "_version": 1, "result": "created"}

        result = await adapter.insert({"name": "Han"})

        record = result.unwrap_record()
        assert len(record["_id"]) == 12
        assert client.index.await_args.kwargs == {
            "index": "user",
            "id": record["_id"],
            "body": {"name": "Han"},
            "refresh": "true",
        }

    async def test_count_and_remove_all(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.count.return_value = {"count": 4}
        client.delete_by_query.return_value = {"deleted": 4, "total": 4}

        assert (await adapter.count({"query": {"match": {"name": "John"}}})).unwrap_count() == 4
        client.count.assert_awaited_once_with(index="user", body={"query": {"match": {"name": "John"}}})

        assert (await adapter.remove_all()).unwrap_summary()["deleted"] == 4
        client.delete_by_query.assert_awaited_once_with(index="user", body={"query": {"match_all": {}}}, refresh=True)

    async def test_remove_all_missing_index(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.delete_by_query.side_effect = NotFoundError(
            404, "index_not_found_exception", {"error": {"reason": "no such index [user]"}}
        )

        result = await adapter.remove_all()

        assert result.error is not None
        assert result.error.status == 404
        assert result.error.root_cause == "no such index [user]"

    async def test_health_green(self, adapter: OpenSearchAdapter) -> None:
        mock_client = MagicMock()
        mock_client.cluster.health = AsyncMock(return_value={"status": "green", "cluster_name": "os", "number_of_nodes": 3})
        adapter._client = mock_client

        health = await adapter.health_check()

        assert health.status == "healthy"
        assert health.last_check is not None

    async def test_find_by_id(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.get.return_value = {"_id": "x1", "found": True, "_source": {"name": "Leia", "age": 33}}

        result = await adapter.find_by_id("x1")

        assert result.unwrap_record() == {"name": "Leia", "age": 33, "_id": "x1"}
        client.get.assert_awaited_once_with(index="user", id="x1")

    async def test_find_by_id_missing(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.get.side_effect = NotFoundError(404, "not_found", {"_index": "user", "_id": "x9", "found": False})

        result = await adapter.find_by_id("x9")

        assert result.is_not_found

    async def test_find_by_id_connection_error(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.get.side_effect = OpenSearchConnectionError("N/A", "refused", Exception("refused"))

        result = await adapter.find_by_id("x1")

        assert result.error is not None
        assert result.error.kind is ErrorKind.CONNECTION
        assert result.error.document_id == "x1"

    async def test_search_without_fields_uses_defaults(self, adapter: OpenSearchAdapter, client: AsyncMock) -> None:
        client.search.return_value = {"hits": {"hits": []}}

        await adapter.find({"search": "John"})

        body = client.search.await_args.kwargs["body"]
        assert body == {"query": {"multi_match": {"query": "John", "fields": ["name", "lastname"]}}}
