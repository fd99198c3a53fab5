"""Search-engine adapter base — Shared execution for engines speaking the Elasticsearch DSL.

Elasticsearch and OpenSearch accept the same request bodies and return the
same response envelopes, so translation, envelope unwrapping and error
extraction live here. Subclasses only provide the client: how to build it,
how to call its search/get/index/delete-by-query/count endpoints, and how to
classify its exceptions.
"""

from __future__ import annotations

import secrets
import string
import time
from abc import abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from querybridge.adapters.base.adapter import AdapterHealth, Logger, StorageAdapter, merge_client_options
from querybridge.adapters.base.exceptions import ConnectionError, SerializationError
from querybridge.models.filter import FilterParams
from querybridge.models.result import ErrorKind, QueryResult, Record
from querybridge.query.dsl import MATCH_ALL_BODY, build_count_body, build_search_body

if TYPE_CHECKING:
    from querybridge.config.settings import BackendSettings

DOCUMENT_ID_LENGTH = 12
_ID_ALPHABET = string.ascii_letters + string.digits


def generate_document_id(length: int = DOCUMENT_ID_LENGTH) -> str:
    """Random alphanumeric document id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def status_text(status: int) -> str:
    """``400`` -> ``"400 Bad Request"``."""
    try:
        return f"{status} {HTTPStatus(status).phrase}"
    except ValueError:
        return str(status)


def extract_root_cause(body: Any) -> str | None:
    """Pull the most specific diagnostic out of an engine error body.

    Looks at ``error.root_cause[0].reason``, then ``error.reason``, then a
    plain-string ``error``.
    """
    if isinstance(body, str):
        return body or None
    if not isinstance(body, Mapping):
        return None
    error = body.get("error")
    if isinstance(error, str):
        return error or None
    if not isinstance(error, Mapping):
        return None
    root_causes = error.get("root_cause")
    if isinstance(root_causes, list) and root_causes and isinstance(root_causes[0], Mapping):
        reason = root_causes[0].get("reason")
        if reason:
            return str(reason)
    reason = error.get("reason")
    return str(reason) if reason else None


def unwrap_hits(response: Any) -> list[Record]:
    """Flatten ``hits.hits[*]`` into records: the ``_source`` payload plus ``_id``.

    Raises:
        SerializationError: If the response has no ``hits.hits`` array.
    """
    if not isinstance(response, Mapping):
        raise SerializationError(f"Search response is not an object: {type(response).__name__}")
    hits = response.get("hits")
    if not isinstance(hits, Mapping) or not isinstance(hits.get("hits"), list):
        raise SerializationError("Search response has no 'hits.hits' array.")

    return [unwrap_hit(hit) for hit in hits["hits"]]


def unwrap_hit(hit: Any) -> Record:
    """One hit (or one ``get`` response) as its ``_source`` payload plus ``_id``."""
    if not isinstance(hit, Mapping):
        raise SerializationError(f"Search hit is not an object: {hit!r}")
    record = dict(hit.get("_source") or {})
    if "_id" in hit:
        record["_id"] = hit["_id"]
    return record


class SearchEngineAdapter(StorageAdapter):
    """Base class for Elasticsearch-compatible engines.

    Args:
        hosts: List of node URLs.
        index: Index that every operation targets.
        timeout: Client request timeout in seconds.
        default_search_fields: Fields a free-text search runs against when the
            filter names none. Empty means the engine's own default.
        logger: Logger for this adapter instance.
        **kwargs: Additional keyword arguments forwarded to the client constructor.
    """

    default_hosts: list[str] = ["http://localhost:9200"]

    def __init__(
        self,
        hosts: list[str] | None = None,
        index: str = "documents",
        timeout: float = 10.0,
        default_search_fields: list[str] | None = None,
        logger: Logger | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(logger)
        self._hosts = hosts or list(self.default_hosts)
        self._index = index
        self._timeout = timeout
        self._default_search_fields = list(default_search_fields or [])
        self._extra_kwargs = kwargs
        self._client: Any = None

    @classmethod
    def from_settings(cls, settings: BackendSettings, logger: Logger | None = None) -> SearchEngineAdapter:
        return cls(
            **merge_client_options(
                settings,
                hosts=settings.endpoints or None,
                index=settings.collection,
                timeout=settings.timeout,
                default_search_fields=settings.default_search_fields,
                logger=logger,
            )
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def index(self) -> str:
        return self._index

    # ── Client hooks ─────────────────────────────────────────────────────

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable engine name for log and error messages."""

    @property
    @abstractmethod
    def client_errors(self) -> tuple[type[Exception], ...]:
        """Exception types raised by the client library."""

    @abstractmethod
    def _create_client(self) -> Any: ...

    @abstractmethod
    def _classify_error(self, exc: Exception) -> tuple[ErrorKind, int | None, Any]:
        """Map a client exception to ``(kind, status, error body)``."""

    @abstractmethod
    async def _search(self, body: dict[str, Any]) -> Any: ...

    @abstractmethod
    async def _get_document(self, doc_id: str) -> Any: ...

    @abstractmethod
    async def _index_document(self, doc_id: str, document: Record) -> Any: ...

    @abstractmethod
    async def _delete_by_query(self, body: dict[str, Any]) -> Any: ...

    @abstractmethod
    async def _count_documents(self, body: dict[str, Any]) -> Any: ...

    def _response_body(self, response: Any) -> Any:
        """Plain-dict body of a client response."""
        return response

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Create the client and verify the cluster answers ``info()``.

        A client left over from an earlier ``connect()`` is closed first.
        """
        await self.disconnect()

        try:
            client = self._create_client()
        except Exception as e:
            raise ConnectionError(f"Could not create {self.display_name} client: {e}") from e

        try:
            info = self._response_body(await client.info())
        except Exception as e:
            await client.close()
            raise ConnectionError(f"Failed to connect to {self.display_name}: {e}") from e

        self._client = client
        version = info.get("version", {}).get("number", "unknown")
        cluster = info.get("cluster_name", "unknown")
        self._log.info(
            "Connected to %s cluster: %s (v%s), index: %s",
            self.display_name,
            cluster,
            version,
            self._index,
        )

    async def disconnect(self) -> None:
        """Close the client."""
        if self._client:
            await self._client.close()
            self._client = None

    # ── Operations ───────────────────────────────────────────────────────

    async def _find(self, params: FilterParams) -> QueryResult:
        body = build_search_body(params, self._default_search_fields, self._log)
        self._log.debug("find() params=%s query=%s", params.model_dump(by_alias=True, exclude_none=True), body)

        try:
            response = await self._search(body)
        except self.client_errors as e:
            return self._failure(e, "error executing search")

        try:
            records = unwrap_hits(self._response_body(response))
        except SerializationError as e:
            self._log.error("Unexpected search response: %s", e)
            return QueryResult.failure(ErrorKind.SERIALIZATION, str(e))

        self._log.debug("find() returned %d records", len(records))
        return QueryResult.of_records(records)

    async def _find_by_id(self, doc_id: str) -> QueryResult:
        try:
            response = await self._get_document(doc_id)
        except self.client_errors as e:
            kind, status, _ = self._classify_error(e)
            if kind is ErrorKind.BACKEND_QUERY and status == HTTPStatus.NOT_FOUND:
                self._log.debug("find_by_id() id=%s not found in index %s", doc_id, self._index)
                return QueryResult.not_found()
            return self._failure(e, f"Error fetching document ID={doc_id}", document_id=doc_id)

        body = self._response_body(response)
        if isinstance(body, Mapping) and body.get("found") is False:
            return QueryResult.not_found()

        try:
            record = unwrap_hit(body)
        except SerializationError as e:
            self._log.error("Unexpected get response: %s", e)
            return QueryResult.failure(ErrorKind.SERIALIZATION, str(e), document_id=doc_id)
        return QueryResult.of_record(record)

    async def _insert(self, record: Record) -> QueryResult:
        supplied_id = record.pop("_id", None)
        doc_id = str(supplied_id) if supplied_id not in (None, "") else generate_document_id()

        try:
            response = await self._index_document(doc_id, record)
        except self.client_errors as e:
            return self._failure(e, f"Error indexing document ID={doc_id}", document_id=doc_id)

        body = self._response_body(response)
        self._log.debug(
            "insert() result=%s version=%s id=%s",
            body.get("result"),
            body.get("_version"),
            doc_id,
        )
        return QueryResult.of_record(
            {
                **record,
                "_id": body.get("_id", doc_id),
                "_version": body.get("_version"),
                "result": body.get("result"),
            }
        )

    async def _count(self, params: FilterParams) -> QueryResult:
        try:
            response = await self._count_documents(build_count_body(params))
        except self.client_errors as e:
            return self._failure(e, "error counting documents")

        count = self._response_body(response).get("count")
        if not isinstance(count, int):
            return QueryResult.failure(ErrorKind.SERIALIZATION, f"Count response has no integer 'count': {count!r}")
        return QueryResult.of_count(count)

    async def _remove_all(self) -> QueryResult:
        try:
            response = await self._delete_by_query(MATCH_ALL_BODY)
        except self.client_errors as e:
            return self._failure(e, "Error deleting docs by query")

        summary = dict(self._response_body(response))
        summary.setdefault("deleted", 0)
        self._log.info("Deleted %s documents from index %s", summary["deleted"], self._index)
        return QueryResult.of_summary(summary)

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Check cluster health."""
        if not self._client:
            return AdapterHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            health = self._response_body(await self._client.cluster.health())
            latency_ms = int((time.monotonic() - start) * 1000)

            status_map = {"green": "healthy", "yellow": "degraded", "red": "unhealthy"}

            return AdapterHealth(
                status=status_map.get(health.get("status", "red"), "unhealthy"),
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Cluster: {health.get('cluster_name')}, Nodes: {health.get('number_of_nodes')}",
            )
        except Exception as e:
            return AdapterHealth(status="unhealthy", message=str(e))

    # ── Helpers ──────────────────────────────────────────────────────────

    def _failure(self, exc: Exception, context: str, document_id: str | None = None) -> QueryResult:
        """Turn a client exception into an error result and log it."""
        kind, status, body = self._classify_error(exc)
        root_cause = extract_root_cause(body) if kind is ErrorKind.BACKEND_QUERY else None

        if kind is ErrorKind.BACKEND_QUERY and status is not None:
            message = f"[{status_text(status)}] {context}"
            if root_cause:
                message += f". root cause: {root_cause}"
        else:
            message = f"{context}: {exc}"

        self._log.error(message)
        return QueryResult.failure(
            kind,
            message,
            status=status,
            root_cause=root_cause,
            document_id=document_id,
        )
