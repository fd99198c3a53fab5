"""Adapter-specific exceptions.

Data operations report failures as ``QueryResult`` error values; these
exceptions are raised by lifecycle calls (``connect()``) and by
``QueryResult.raise_for_error()`` / the ``unwrap_*`` accessors.
"""

from __future__ import annotations


class AdapterError(Exception):
    """Base exception for adapter errors.

    Errors raised from a failed ``QueryResult`` carry its diagnostics.
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: int | None = None,
        root_cause: str | None = None,
        document_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.root_cause = root_cause
        self.document_id = document_id


class ConnectionError(AdapterError):
    """Raised when the adapter cannot connect to the backend."""


class BackendQueryError(AdapterError):
    """Raised when the backend rejects or fails a query."""


class NotFoundError(AdapterError):
    """Raised when a single record was requested but none matched."""


class SerializationError(AdapterError):
    """Raised when a request or response body is malformed."""


class ConfigurationError(AdapterError):
    """Raised when adapter configuration is invalid."""


class ResultTypeError(AdapterError):
    """Raised when a result is read as the wrong kind."""
