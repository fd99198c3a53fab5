"""MongoDB query translation — Filter payloads to ``find()`` arguments."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING

from querybridge.models.filter import FilterParams
from querybridge.query.sort import SortDirection, parse_sort


class MongoFindQuery(BaseModel):
    """Native MongoDB query: filter document plus cursor options."""

    filter: dict[str, Any] = Field(default_factory=dict, description="Query document")
    sort: list[tuple[str, int]] = Field(default_factory=list, description="Ordered (field, direction) pairs")
    skip: int = Field(default=0, description="Documents to skip")
    limit: int | None = Field(default=None, description="Maximum documents to return (None = no limit)")

    def find_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``collection.find()``."""
        kwargs: dict[str, Any] = {"filter": self.filter}
        if self.sort:
            kwargs["sort"] = self.sort
        if self.skip:
            kwargs["skip"] = self.skip
        if self.limit is not None:
            kwargs["limit"] = self.limit
        return kwargs


def build_text_clause(search: str, fields: Sequence[str] | None) -> dict[str, Any]:
    """Match ``search`` against ``fields``, or the collection's text index when no fields are given."""
    if not fields:
        return {"$text": {"$search": search}}
    pattern = re.escape(search)
    clauses = [{field: {"$regex": pattern, "$options": "i"}} for field in fields]
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


def build_filter(params: FilterParams, default_fields: Sequence[str] | None = None) -> dict[str, Any]:
    structured = params.structured_query
    search = params.search_text
    if search is None:
        return dict(structured or {})

    text_clause = build_text_clause(search, params.search_fields or default_fields)
    if structured is None:
        return text_clause
    return {"$and": [structured, text_clause]}


def build_find_query(
    params: FilterParams,
    default_fields: Sequence[str] | None = None,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> MongoFindQuery:
    """Translate a filter into a ``MongoFindQuery``."""
    sorts = parse_sort(params.sort, log)
    return MongoFindQuery(
        filter=build_filter(params, default_fields),
        sort=[
            (field, DESCENDING if direction is SortDirection.DESC else ASCENDING)
            for field, direction in sorts.items()
        ],
        skip=params.offset or 0,
        limit=params.limit,
    )


def build_count_filter(params: FilterParams) -> dict[str, Any]:
    """Filter document for ``count_documents()`` (structured query only)."""
    return dict(params.structured_query or {})
