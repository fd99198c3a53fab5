"""Filter model — The backend-agnostic description of a query request."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


class FilterParams(BaseModel):
    """What to match, how to paginate and how to order results.

    Field names follow the wire payload (``searchFields``) but can also be
    populated by their Python names.
    """

    model_config = {"populate_by_name": True}

    query: dict[str, Any] | None = Field(
        default=None,
        description="Structured filter in the backend's native shape",
    )
    search: str | None = Field(default=None, description="Free-text search string")
    search_fields: list[str] | None = Field(
        default=None,
        alias="searchFields",
        description="Fields to run the free-text search against (ignored without 'search')",
    )
    limit: int | None = Field(default=None, ge=0, description="Maximum number of records to return")
    offset: int | None = Field(default=None, ge=0, description="Number of records to skip")
    sort: str | list[str] | None = Field(
        default=None,
        description="Sort order: 'name -age', or ['name', '-age']. Leading '-' sorts descending",
    )

    @property
    def search_text(self) -> str | None:
        """The search string, or ``None`` when absent or blank."""
        if self.search is None or not self.search.strip():
            return None
        return self.search

    @property
    def structured_query(self) -> dict[str, Any] | None:
        """The structured filter, or ``None`` when absent or empty."""
        return self.query or None


def coerce_filter(params: FilterParams | Mapping[str, Any] | None) -> FilterParams:
    """Accept a model, a plain mapping or ``None`` and return a ``FilterParams``.

    Raises:
        pydantic.ValidationError: If the mapping does not describe a valid filter.
    """
    if params is None:
        return FilterParams()
    if isinstance(params, FilterParams):
        return params
    if isinstance(params, Mapping):
        params = dict(params)
    return FilterParams.model_validate(params)
