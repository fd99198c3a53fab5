"""MongoDB adapter — Filter queries against a MongoDB collection via Motor.

The structured ``query`` of a filter is a MongoDB query document and is
passed through as-is. Free-text ``search`` becomes a case-insensitive regex
over the search fields, or a ``$text`` query when no fields are known (the
collection then needs a text index).

Usage::

    adapter = MongoAdapter(
        hosts=["mongodb://localhost:27017"],
        database="app",
        collection="users",
    )
    await adapter.connect()
    result = await adapter.count({"query": {"age": {"$gt": 60}}})
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from bson import ObjectId
from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from querybridge.adapters.base.adapter import AdapterHealth, Logger, StorageAdapter, merge_client_options
from querybridge.adapters.base.exceptions import ConnectionError
from querybridge.models.filter import FilterParams
from querybridge.models.result import ErrorKind, QueryResult, Record
from querybridge.query.mongo import build_count_filter, build_find_query

if TYPE_CHECKING:
    from querybridge.config.settings import BackendSettings

_CLIENT_ERRORS = (PyMongoError, BSONError)


def normalize_document(document: dict[str, Any]) -> Record:
    """Copy a stored document into a record with a string ``_id``."""
    record = dict(document)
    if "_id" in record:
        record["_id"] = str(record["_id"])
    return record


class MongoAdapter(StorageAdapter):
    """Storage adapter for MongoDB.

    Args:
        hosts: MongoDB connection URIs, e.g. ``["mongodb://localhost:27017"]``.
        database: Database name.
        collection: Target collection name.
        timeout: Server-selection and connect timeout in seconds.
        default_search_fields: Fields searched when a filter gives ``search`` without ``searchFields``.
        logger: Logger for this adapter instance.
        **kwargs: Additional keyword arguments forwarded to ``AsyncIOMotorClient``.
    """

    def __init__(
        self,
        hosts: list[str] | None = None,
        database: str = "querybridge",
        collection: str = "documents",
        timeout: float = 10.0,
        default_search_fields: list[str] | None = None,
        logger: Logger | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(logger)
        self._hosts = hosts or ["mongodb://localhost:27017"]
        self._database = database
        self._collection = collection
        self._timeout = timeout
        self._default_search_fields = list(default_search_fields or [])
        self._extra_kwargs = kwargs
        self._client: Any = None

    @classmethod
    def from_settings(cls, settings: BackendSettings, logger: Logger | None = None) -> MongoAdapter:
        return cls(
            **merge_client_options(
                settings,
                hosts=settings.endpoints or None,
                database=settings.database or "querybridge",
                collection=settings.collection,
                timeout=settings.timeout,
                default_search_fields=settings.default_search_fields,
                logger=logger,
            )
        )

    @property
    def name(self) -> str:
        return "mongodb"

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def collection(self) -> Any:
        """The Motor collection every operation targets."""
        return self._client[self._database][self._collection]

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Create the Motor client and ping the server, closing any previous client."""
        await self.disconnect()

        timeout_ms = int(self._timeout * 1000)
        try:
            client = AsyncIOMotorClient(
                self._hosts,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
                **self._extra_kwargs,
            )
        except Exception as e:
            raise ConnectionError(f"Could not create MongoDB client: {e}") from e

        try:
            await client.admin.command("ping")
        except Exception as e:
            client.close()
            raise ConnectionError(f"Failed to connect to MongoDB: {e}") from e

        self._client = client
        self._log.info(
            "Connected to MongoDB at %s (database: %s, collection: %s)",
            ",".join(self._hosts),
            self._database,
            self._collection,
        )

    async def disconnect(self) -> None:
        """Close the client (Motor's ``close()`` is synchronous)."""
        if self._client is not None:
            self._client.close()
            self._client = None

    # ── Operations ───────────────────────────────────────────────────────

    async def _find(self, params: FilterParams) -> QueryResult:
        query = build_find_query(params, self._default_search_fields, self._log)
        self._log.debug("find() params=%s query=%s", params.model_dump(by_alias=True, exclude_none=True), query)
        if query.limit == 0:
            return QueryResult.of_records([])

        try:
            cursor = self.collection.find(**query.find_kwargs())
            documents = await cursor.to_list(length=None)
        except _CLIENT_ERRORS as e:
            return self._failure(e, "error executing find")

        return QueryResult.of_records([normalize_document(doc) for doc in documents])

    async def _find_by_id(self, doc_id: str) -> QueryResult:
        # Ids come back stringified, so a 24-hex id may be stored as either form.
        candidates: list[Any] = [doc_id]
        if ObjectId.is_valid(doc_id):
            candidates.insert(0, ObjectId(doc_id))

        try:
            document = await self.collection.find_one({"_id": {"$in": candidates}})
        except _CLIENT_ERRORS as e:
            return self._failure(e, f"Error fetching document ID={doc_id}", document_id=doc_id)

        if document is None:
            return QueryResult.not_found()
        return QueryResult.of_record(normalize_document(document))

    async def _insert(self, record: Record) -> QueryResult:
        document = dict(record)
        try:
            result = await self.collection.insert_one(document)
        except _CLIENT_ERRORS as e:
            doc_id = str(record["_id"]) if "_id" in record else None
            return self._failure(e, f"Error inserting document ID={doc_id}", document_id=doc_id)

        doc_id = str(result.inserted_id)
        self._log.debug("insert() id=%s", doc_id)
        return QueryResult.of_record({**record, "_id": doc_id, "result": "created"})

    async def _count(self, params: FilterParams) -> QueryResult:
        try:
            count = await self.collection.count_documents(build_count_filter(params))
        except _CLIENT_ERRORS as e:
            return self._failure(e, "error counting documents")
        return QueryResult.of_count(count)

    async def _remove_all(self) -> QueryResult:
        try:
            result = await self.collection.delete_many({})
        except _CLIENT_ERRORS as e:
            return self._failure(e, "Error deleting all documents")

        self._log.info("Deleted %d documents from %s.%s", result.deleted_count, self._database, self._collection)
        return QueryResult.of_summary({"deleted": result.deleted_count, "acknowledged": result.acknowledged})

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Ping the server."""
        if self._client is None:
            return AdapterHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            await self._client.admin.command("ping")
            latency_ms = int((time.monotonic() - start) * 1000)
            return AdapterHealth(
                status="healthy",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Database: {self._database}, collection: {self._collection}",
            )
        except Exception as e:
            return AdapterHealth(status="unhealthy", message=str(e))

    # ── Helpers ──────────────────────────────────────────────────────────

    def _failure(self, exc: Exception, context: str, document_id: str | None = None) -> QueryResult:
        """Turn a driver exception into an error result and log it."""
        if isinstance(exc, ConnectionFailure):
            kind, message, root_cause = ErrorKind.CONNECTION, f"{context}: {exc}", None
        elif isinstance(exc, BSONError):
            kind, message, root_cause = ErrorKind.SERIALIZATION, f"{context}: {exc}", None
        elif isinstance(exc, OperationFailure):
            root_cause = (exc.details or {}).get("errmsg") or str(exc)
            kind, message = ErrorKind.BACKEND_QUERY, f"[code {exc.code}] {context}. root cause: {root_cause}"
        else:
            kind, message, root_cause = ErrorKind.BACKEND_QUERY, f"{context}: {exc}", None

        self._log.error(message)
        return QueryResult.failure(kind, message, root_cause=root_cause, document_id=document_id)
