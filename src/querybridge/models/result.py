"""Uniform result model — What every adapter operation returns.

Adapter operations never raise for backend failures. They hand back a
``QueryResult`` holding exactly one of: a list of records, a single record,
a count, a deletion summary, a "not found" marker, or an ``ErrorInfo``.
Callers check ``is_error`` before reading data, or use the ``unwrap_*``
accessors, which fail loudly on the wrong kind.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, Field

Record = dict[str, Any]
T = TypeVar("T")


class ErrorKind(str, Enum):
    """Classification of a failed operation."""

    CONNECTION = "connection"
    BACKEND_QUERY = "backend_query"
    NOT_FOUND = "not_found"
    SERIALIZATION = "serialization"


class ResultKind(str, Enum):
    """Which payload a ``QueryResult`` carries."""

    RECORDS = "records"
    RECORD = "record"
    COUNT = "count"
    SUMMARY = "summary"
    NOT_FOUND = "not_found"
    ERROR = "error"


class ErrorInfo(BaseModel):
    """Diagnostic payload of a failed operation."""

    kind: ErrorKind = Field(description="Error classification")
    message: str = Field(description="Human-readable error message")
    status: int | None = Field(default=None, description="HTTP-like status code reported by the backend")
    root_cause: str | None = Field(default=None, description="Backend-supplied root cause, when available")
    document_id: str | None = Field(default=None, description="Document the failed write was addressed to")


class QueryResult(BaseModel):
    """Tagged result of an adapter operation."""

    kind: ResultKind = Field(description="Which payload is populated")
    records: list[Record] = Field(default_factory=list, description="Records, for 'records' results")
    record: Record | None = Field(default=None, description="Single record, for 'record' results")
    count: int | None = Field(default=None, description="Scalar count, for 'count' results")
    summary: dict[str, Any] | None = Field(default=None, description="Deletion summary, for 'summary' results")
    error: ErrorInfo | None = Field(default=None, description="Error payload, for 'error' results")

    # ── Constructors ─────────────────────────────────────────────────────

    @classmethod
    def of_records(cls, records: list[Record]) -> QueryResult:
        return cls(kind=ResultKind.RECORDS, records=records)

    @classmethod
    def of_record(cls, record: Record) -> QueryResult:
        return cls(kind=ResultKind.RECORD, record=record)

    @classmethod
    def of_count(cls, count: int) -> QueryResult:
        return cls(kind=ResultKind.COUNT, count=count)

    @classmethod
    def of_summary(cls, summary: dict[str, Any]) -> QueryResult:
        return cls(kind=ResultKind.SUMMARY, summary=summary)

    @classmethod
    def not_found(cls) -> QueryResult:
        return cls(kind=ResultKind.NOT_FOUND)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        status: int | None = None,
        root_cause: str | None = None,
        document_id: str | None = None,
    ) -> QueryResult:
        """Build an error result."""
        return cls(
            kind=ResultKind.ERROR,
            error=ErrorInfo(
                kind=kind,
                message=message,
                status=status,
                root_cause=root_cause,
                document_id=document_id,
            ),
        )

    # ── Predicates ───────────────────────────────────────────────────────

    @property
    def is_error(self) -> bool:
        return self.kind is ResultKind.ERROR

    @property
    def is_not_found(self) -> bool:
        return self.kind is ResultKind.NOT_FOUND

    # ── Typed accessors ──────────────────────────────────────────────────

    def raise_for_error(self) -> None:
        """Raise the exception matching the error kind, if this is an error result."""
        if not self.is_error or self.error is None:
            return

        from querybridge.adapters.base.exceptions import (
            BackendQueryError,
            ConnectionError,
            NotFoundError,
            SerializationError,
        )

        exc_class = {
            ErrorKind.CONNECTION: ConnectionError,
            ErrorKind.BACKEND_QUERY: BackendQueryError,
            ErrorKind.NOT_FOUND: NotFoundError,
            ErrorKind.SERIALIZATION: SerializationError,
        }[self.error.kind]
        raise exc_class(
            self.error.message,
            status=self.error.status,
            root_cause=self.error.root_cause,
            document_id=self.error.document_id,
        )

    def unwrap_records(self) -> list[Record]:
        self._expect(ResultKind.RECORDS)
        return self.records

    def unwrap_record(self) -> Record:
        """Return the single record.

        Raises:
            NotFoundError: If the result is the "not found" marker.
        """
        if self.is_not_found:
            from querybridge.adapters.base.exceptions import NotFoundError

            raise NotFoundError("No matching record.")
        self._expect(ResultKind.RECORD)
        return self._payload(self.record)

    def unwrap_count(self) -> int:
        self._expect(ResultKind.COUNT)
        return self._payload(self.count)

    def unwrap_summary(self) -> dict[str, Any]:
        self._expect(ResultKind.SUMMARY)
        return self._payload(self.summary)

    def _expect(self, kind: ResultKind) -> None:
        self.raise_for_error()
        if self.kind is not kind:
            from querybridge.adapters.base.exceptions import ResultTypeError

            raise ResultTypeError(f"Expected a '{kind.value}' result, got '{self.kind.value}'.")

    def _payload(self, value: T | None) -> T:
        if value is None:
            from querybridge.adapters.base.exceptions import ResultTypeError

            raise ResultTypeError(f"'{self.kind.value}' result has no payload.")
        return value
