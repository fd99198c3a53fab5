"""Sort parser — Turns ``"name -age"`` style sort strings into ordered field/direction pairs.

Accepted forms::

    "name"              -> {"name": asc}
    "name -age"         -> {"name": asc, "age": desc}
    ["name", "-age"]    -> {"name": asc, "age": desc}

Blank tokens and a bare ``-`` are not errors: they are logged as invalid
and contribute nothing, so the backend's default ordering applies.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

logger = logging.getLogger(__name__)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def sort_entry(token: str) -> tuple[str, SortDirection] | None:
    """Derive a single sort entry from a token.

    Returns:
        ``(field, direction)``, or ``None`` if the token names no field.
    """
    token = token.strip()
    if token.startswith("-"):
        field, direction = token[1:], SortDirection.DESC
    else:
        field, direction = token, SortDirection.ASC
    if not field:
        return None
    return field, direction


def parse_sort(
    sort: str | Sequence[str] | None,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> dict[str, SortDirection]:
    """Parse a sort string or list into an ordered ``{field: direction}`` mapping.

    A field named twice keeps its first position and takes the last direction.

    Args:
        sort: A single token, a whitespace-delimited string of tokens, or a
            sequence of tokens.
        log: Logger used to report invalid entries. Defaults to this module's logger.

    Returns:
        The parsed mapping; empty when nothing valid was given.
    """
    log = log or logger
    if sort is None:
        return {}

    if isinstance(sort, str):
        tokens = sort.split()
        if not tokens:
            log.warning("Invalid sort entry: %r", sort)
            return {}
    else:
        tokens = list(sort)

    sorts: dict[str, SortDirection] = {}
    for token in tokens:
        entry = sort_entry(str(token))
        if entry is None:
            log.warning("Invalid sort entry: %r", token)
            continue
        field, direction = entry
        sorts[field] = direction
    return sorts
