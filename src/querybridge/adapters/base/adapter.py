"""Base storage adapter — Abstract interface for all backend connectors.

Every backend must implement this interface to integrate with querybridge.
The adapter is responsible for:
  1. Translating a ``FilterParams`` into the backend's native query
  2. Executing finds, id lookups, inserts, counts and bulk deletes
  3. Unwrapping backend response envelopes into flat records
  4. Converting transport and backend failures into ``QueryResult`` errors
  5. Reporting health status

The public operations validate their input and check the connection here,
then hand over to the backend-specific ``_find`` / ``_find_by_id`` /
``_insert`` / ``_count`` / ``_remove_all`` hooks.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from querybridge.adapters.base.exceptions import ConfigurationError
from querybridge.models.filter import FilterParams, coerce_filter
from querybridge.models.result import ErrorKind, QueryResult, Record

if TYPE_CHECKING:
    from querybridge.config.settings import BackendSettings

Logger = logging.Logger | logging.LoggerAdapter


def merge_client_options(settings: BackendSettings, **kwargs: Any) -> dict[str, Any]:
    """Constructor kwargs from settings plus the pass-through ``client_options``.

    Raises:
        ConfigurationError: If ``client_options`` repeats a constructor argument.
    """
    conflicts = sorted(set(kwargs) & set(settings.client_options))
    if conflicts:
        raise ConfigurationError(
            f"client_options may not override adapter settings: {', '.join(conflicts)}"
        )
    return {**kwargs, **settings.client_options}


class AdapterHealth(BaseModel):
    """Health status of a storage adapter."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class StorageAdapter(ABC):
    """Abstract base class for storage adapters.

    All adapters must implement:
      - connect() / disconnect(): client lifecycle
      - _find(), _find_by_id(), _insert(), _count(), _remove_all(): backend execution
      - health_check(): report adapter health status

    Adapters hold only the client handle and their configuration, so one
    instance can serve concurrent callers. Each instance logs through the
    logger it was given.

    Args:
        logger: Logger for this adapter instance. Defaults to the module logger
            of the concrete adapter class.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self._log: Logger = logger or logging.getLogger(type(self).__module__)

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name (e.g., 'elasticsearch', 'mongodb')."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether ``connect()`` has succeeded and ``disconnect()`` has not been called since."""

    @classmethod
    @abstractmethod
    def from_settings(cls, settings: BackendSettings, logger: Logger | None = None) -> StorageAdapter:
        """Create an adapter from a ``BackendSettings`` block."""

    @abstractmethod
    async def connect(self) -> None:
        """Create the backend client and verify the backend is reachable.

        Raises:
            ConnectionError: If the client cannot be built or the backend does not answer.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the client. Safe to call when not connected."""

    @abstractmethod
    async def health_check(self) -> AdapterHealth:
        """Check the health of the backend. Never raises."""

    # ── Operations ───────────────────────────────────────────────────────

    async def find(self, params: FilterParams | Mapping[str, Any] | None = None) -> QueryResult:
        """Return every record matching ``params``, in backend order."""
        filter_params = self._coerce(params)
        if isinstance(filter_params, QueryResult):
            return filter_params
        if not self.is_connected:
            return self._not_connected()
        return await self._find(filter_params)

    async def find_one(self, params: FilterParams | Mapping[str, Any] | None = None) -> QueryResult:
        """Return the first record matching ``params``, or a "not found" marker."""
        filter_params = self._coerce(params)
        if isinstance(filter_params, QueryResult):
            return filter_params
        result = await self.find(filter_params.model_copy(update={"limit": 1}))
        if result.is_error:
            return result
        if not result.records:
            return QueryResult.not_found()
        return QueryResult.of_record(result.records[0])

    async def find_by_id(self, doc_id: str) -> QueryResult:
        """Return the record stored under ``doc_id``, or a "not found" marker."""
        if not self.is_connected:
            return self._not_connected()
        return await self._find_by_id(str(doc_id))

    async def insert(self, record: Mapping[str, Any]) -> QueryResult:
        """Store ``record`` and return it with its identifier attached."""
        if not isinstance(record, Mapping):
            return QueryResult.failure(
                ErrorKind.SERIALIZATION,
                f"Record must be a mapping, got {type(record).__name__}.",
            )
        if not self.is_connected:
            return self._not_connected()
        return await self._insert(dict(record))

    async def count(self, params: FilterParams | Mapping[str, Any] | None = None) -> QueryResult:
        """Count records matching the structured ``query`` of ``params``."""
        filter_params = self._coerce(params)
        if isinstance(filter_params, QueryResult):
            return filter_params
        if not self.is_connected:
            return self._not_connected()
        return await self._count(filter_params)

    async def remove_all(self) -> QueryResult:
        """Delete every record in the target index or collection."""
        if not self.is_connected:
            return self._not_connected()
        return await self._remove_all()

    # ── Backend hooks ────────────────────────────────────────────────────

    @abstractmethod
    async def _find(self, params: FilterParams) -> QueryResult: ...

    @abstractmethod
    async def _find_by_id(self, doc_id: str) -> QueryResult: ...

    @abstractmethod
    async def _insert(self, record: Record) -> QueryResult: ...

    @abstractmethod
    async def _count(self, params: FilterParams) -> QueryResult: ...

    @abstractmethod
    async def _remove_all(self) -> QueryResult: ...

    # ── Helpers ──────────────────────────────────────────────────────────

    def _coerce(self, params: FilterParams | Mapping[str, Any] | None) -> FilterParams | QueryResult:
        try:
            return coerce_filter(params)
        except ValidationError as e:
            self._log.warning("Rejected invalid filter: %s", e)
            return QueryResult.failure(ErrorKind.SERIALIZATION, f"Invalid filter: {e}")

    def _not_connected(self) -> QueryResult:
        return QueryResult.failure(ErrorKind.CONNECTION, f"{self.name} client not initialized.")
