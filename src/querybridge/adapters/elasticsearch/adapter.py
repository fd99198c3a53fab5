"""Elasticsearch adapter — Filter queries against Elasticsearch (v8+).

Uses the official ``elasticsearch`` client (``AsyncElasticsearch``). The
request bodies come from ``querybridge.query.dsl``; this module only maps
them onto the client's keyword API and classifies its exceptions.

Usage::

    adapter = ElasticsearchAdapter(hosts=["http://localhost:9200"], index="users")
    await adapter.connect()
    result = await adapter.find({"search": "John", "searchFields": ["name"]})
"""

from __future__ import annotations

from typing import Any

from elasticsearch import ApiError, AsyncElasticsearch, SerializationError, TransportError

from querybridge.adapters.base.search_engine import SearchEngineAdapter
from querybridge.models.result import ErrorKind, Record

# Body keys the client exposes under a different keyword.
_PARAMETER_ALIASES = {"from": "from_"}


def _api_fields(body: dict[str, Any]) -> dict[str, Any]:
    return {_PARAMETER_ALIASES.get(key, key): value for key, value in body.items()}


class ElasticsearchAdapter(SearchEngineAdapter):
    """Storage adapter for Elasticsearch (v8+).

    Args:
        hosts: List of Elasticsearch node URLs.
        index: Target index name.
        timeout: Request timeout in seconds.
        default_search_fields: Fields searched when a filter gives ``search`` without ``searchFields``.
        logger: Logger for this adapter instance.
        **kwargs: Additional keyword arguments forwarded to ``AsyncElasticsearch``.
    """

    @property
    def name(self) -> str:
        return "elasticsearch"

    @property
    def display_name(self) -> str:
        return "Elasticsearch"

    @property
    def client_errors(self) -> tuple[type[Exception], ...]:
        return (ApiError, TransportError)

    def _create_client(self) -> AsyncElasticsearch:
        return AsyncElasticsearch(
            hosts=self._hosts,
            request_timeout=self._timeout,
            **self._extra_kwargs,
        )

    def _response_body(self, response: Any) -> Any:
        return response.body

    def _classify_error(self, exc: Exception) -> tuple[ErrorKind, int | None, Any]:
        if isinstance(exc, ApiError):
            return ErrorKind.BACKEND_QUERY, exc.meta.status, exc.body
        if isinstance(exc, SerializationError):
            return ErrorKind.SERIALIZATION, None, None
        return ErrorKind.CONNECTION, None, None

    # ── Client calls ─────────────────────────────────────────────────────

    async def _search(self, body: dict[str, Any]) -> Any:
        return await self._client.search(index=self._index, track_total_hits=True, **_api_fields(body))

    async def _get_document(self, doc_id: str) -> Any:
        return await self._client.get(index=self._index, id=doc_id)

    async def _index_document(self, doc_id: str, document: Record) -> Any:
        return await self._client.index(index=self._index, id=doc_id, document=document, refresh="true")

    async def _delete_by_query(self, body: dict[str, Any]) -> Any:
        return await self._client.delete_by_query(index=self._index, refresh=True, **_api_fields(body))

    async def _count_documents(self, body: dict[str, Any]) -> Any:
        return await self._client.count(index=self._index, **_api_fields(body))
