"""Integration tests for OpenSearchAdapter against a real OpenSearch cluster."""

from __future__ import annotations

import pytest

from querybridge.adapters.opensearch.adapter import OpenSearchAdapter
from querybridge.models.result import ErrorKind

pytestmark = [pytest.mark.integration, pytest.mark.asyncio, pytest.mark.opensearch]


@pytest.fixture
async def adapter(opensearch_ready, users, load_users, user_index):
    a = OpenSearchAdapter(hosts=[opensearch_ready], index=user_index)
    await a.connect()
    await load_users(a, users)
    yield a
    await a.disconnect()


class TestOpenSearchHealth:
    async def test_health_check(self, adapter):
        health = await adapter.health_check()
        assert health.status in ("healthy", "degraded")

    async def test_name_property(self, adapter):
        assert adapter.name == "opensearch"


class TestOpenSearchInsert:
    async def test_insert_is_immediately_searchable(self, adapter):
        record = (await adapter.insert({"name": "Han", "lastname": "Solo", "age": 35})).unwrap_record()

        assert len(record["_id"]) == 12
        found = (await adapter.find_one({"query": {"term": {"name": "Han"}}})).unwrap_record()
        assert found["_id"] == record["_id"]

    async def test_find_by_returned_id(self, adapter):
        record = (await adapter.insert({"name": "Han", "lastname": "Solo", "age": 35})).unwrap_record()

        found = (await adapter.find_by_id(record["_id"])).unwrap_record()

        assert found == {"name": "Han", "lastname": "Solo", "age": 35, "_id": record["_id"]}
        assert (await adapter.find_by_id("no-such-id")).is_not_found


class TestOpenSearchFind:
    async def test_find_all(self, adapter):
        assert len((await adapter.find({})).unwrap_records()) == 6

    async def test_limit(self, adapter):
        assert len((await adapter.find({"limit": 3})).unwrap_records()) == 3

    async def test_sort_and_offset(self, adapter):
        result = await adapter.find({"sort": ["name", "-age"], "offset": 1, "limit": 2})
        assert [(r["name"], r["age"]) for r in result.unwrap_records()] == [("John", 65), ("John", 25)]

    async def test_search_fields(self, adapter):
        result = await adapter.find({"search": "John", "searchFields": ["name", "midlename"]})
        assert {r["lastname"] for r in result.unwrap_records()} == {"Snow", "Travolta"}

    async def test_search_without_fields(self, adapter):
        result = await adapter.find({"search": "John"})
        assert {r["lastname"] for r in result.unwrap_records()} == {"Snow", "Travolta"}

    async def test_query_and_search(self, adapter):
        result = await adapter.find(
            {"query": {"range": {"age": {"gt": 60}}}, "search": "John", "searchFields": ["name"]}
        )
        assert [r["lastname"] for r in result.unwrap_records()] == ["Travolta"]

    async def test_sort_on_unknown_field_reports_root_cause(self, adapter):
        result = await adapter.find({"sort": "unmapped_field"})
        assert result.error is not None
        assert result.error.kind is ErrorKind.BACKEND_QUERY
        assert result.error.status == 400
        assert "root cause:" in result.error.message


class TestOpenSearchCount:
    async def test_count(self, adapter):
        assert (await adapter.count()).unwrap_count() == 6
        assert (await adapter.count({"query": {"range": {"age": {"gt": 60}}}})).unwrap_count() == 2

    async def test_remove_all_then_count(self, adapter):
        assert (await adapter.remove_all()).unwrap_summary()["deleted"] == 6
        assert (await adapter.count()).unwrap_count() == 0
