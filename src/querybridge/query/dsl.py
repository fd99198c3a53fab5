"""Search-engine query DSL — Shared by the Elasticsearch and OpenSearch adapters.

A filter is translated into one request body::

    {
        "query": {"bool": {"filter": [<structured query>], "must": [<text clause>]}},
        "size": <limit>,
        "from": <offset>,
        "sort": [{"name": "asc"}, {"age": "desc"}],
    }

The text clause is a ``multi_match`` when a search string is given and
``match_all`` otherwise. Without a structured query the text clause is the
whole ``query``. Keys for absent pagination/sort are left out so the
engine's defaults apply (size 10, from 0, relevance order).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from querybridge.models.filter import FilterParams
from querybridge.query.sort import parse_sort

MATCH_ALL: dict[str, Any] = {"match_all": {}}
MATCH_ALL_BODY: dict[str, Any] = {"query": MATCH_ALL}


def build_match_clause(
    params: FilterParams,
    default_fields: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Build the "what to match" part of the query."""
    search = params.search_text
    if search is not None:
        multi_match: dict[str, Any] = {"query": search}
        fields = params.search_fields or default_fields
        if fields:
            multi_match["fields"] = list(fields)
        text_clause: dict[str, Any] = {"multi_match": multi_match}
    else:
        text_clause = dict(MATCH_ALL)

    structured = params.structured_query
    if structured is None:
        return text_clause
    return {"bool": {"filter": [structured], "must": [text_clause]}}


def build_query_params(
    params: FilterParams,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> dict[str, Any]:
    """Build pagination and sort keys."""
    body: dict[str, Any] = {}
    if params.limit is not None:
        body["size"] = params.limit
    if params.offset is not None:
        body["from"] = params.offset
    if params.sort is not None:
        sorts = parse_sort(params.sort, log)
        if sorts:
            body["sort"] = [{field: direction.value} for field, direction in sorts.items()]
    return body


def build_search_body(
    params: FilterParams,
    default_fields: Sequence[str] | None = None,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> dict[str, Any]:
    """Translate a filter into a complete search request body."""
    body = build_query_params(params, log)
    body["query"] = build_match_clause(params, default_fields)
    return body


def build_count_body(params: FilterParams) -> dict[str, Any]:
    """Translate a filter into a count request body (structured query only)."""
    return {"query": params.structured_query or dict(MATCH_ALL)}
