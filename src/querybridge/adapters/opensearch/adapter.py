"""OpenSearch adapter — Filter queries against OpenSearch (v2+).

OpenSearch is an AWS-maintained fork of Elasticsearch with a compatible
query DSL and API surface. This adapter uses ``opensearch-py`` (async) and
sends the request bodies from ``querybridge.query.dsl`` unchanged.
"""

from __future__ import annotations

from typing import Any

from opensearchpy import AsyncOpenSearch
from opensearchpy.exceptions import (
    ConnectionError as OpenSearchConnectionError,
    OpenSearchException,
    SerializationError,
    TransportError,
)

from querybridge.adapters.base.search_engine import SearchEngineAdapter
from querybridge.models.result import ErrorKind, Record


class OpenSearchAdapter(SearchEngineAdapter):
    """Storage adapter for OpenSearch (v2+).

    Args:
        hosts: List of OpenSearch node URLs.
        index: Target index name.
        timeout: Request timeout in seconds.
        default_search_fields: Fields searched when a filter gives ``search`` without ``searchFields``.
        logger: Logger for this adapter instance.
        **kwargs: Additional keyword arguments forwarded to ``AsyncOpenSearch``.
    """

    @property
    def name(self) -> str:
        return "opensearch"

    @property
    def display_name(self) -> str:
        return "OpenSearch"

    @property
    def client_errors(self) -> tuple[type[Exception], ...]:
        return (OpenSearchException,)

    def _create_client(self) -> AsyncOpenSearch:
        return AsyncOpenSearch(
            hosts=self._hosts,
            timeout=self._timeout,
            **self._extra_kwargs,
        )

    def _classify_error(self, exc: Exception) -> tuple[ErrorKind, int | None, Any]:
        if isinstance(exc, SerializationError):
            return ErrorKind.SERIALIZATION, None, None
        if isinstance(exc, OpenSearchConnectionError):
            return ErrorKind.CONNECTION, None, None
        if isinstance(exc, TransportError) and isinstance(exc.status_code, int):
            return ErrorKind.BACKEND_QUERY, exc.status_code, exc.info
        return ErrorKind.BACKEND_QUERY, None, None

    # ── Client calls ─────────────────────────────────────────────────────

    async def _search(self, body: dict[str, Any]) -> Any:
        return await self._client.search(index=self._index, body=body, track_total_hits=True)

    async def _get_document(self, doc_id: str) -> Any:
        return await self._client.get(index=self._index, id=doc_id)

    async def _index_document(self, doc_id: str, document: Record) -> Any:
        return await self._client.index(index=self._index, id=doc_id, body=document, refresh="true")

    async def _delete_by_query(self, body: dict[str, Any]) -> Any:
        return await self._client.delete_by_query(index=self._index, body=body, refresh=True)

    async def _count_documents(self, body: dict[str, Any]) -> Any:
        return await self._client.count(index=self._index, body=body)
