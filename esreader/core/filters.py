# esreader/core/filters.py
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..utils.log import log

Filter = Dict[str, Any]


def exists_filter(field: str) -> Filter:
    """Field is present and holds a non-null value."""
    return {"exists": {"field": field}}


def missing_filter(field: str) -> Filter:
    """Field is absent or null."""
    return {"bool": {"must_not": [exists_filter(field)]}}


def and_filters(filters: Sequence[Filter]) -> Optional[Filter]:
    """AND a list of filters together. A single filter is returned unwrapped."""
    if not filters:
        return None
    if len(filters) == 1:
        return filters[0]
    return {"bool": {"filter": list(filters)}}


def compose_filter(
    with_fields: Sequence[str] = (), without_fields: Sequence[str] = ()
) -> Optional[Filter]:
    """
    Build the post filter for a scroll request.
    Each non-empty list contributes one constraint, taken from its first field;
    when both lists contribute, the two constraints are ANDed.
    Returns None when there is nothing to filter on.
    """
    clauses: list[Filter] = []
    if with_fields:
        _warn_ignored("with_fields", with_fields)
        clauses.append(exists_filter(with_fields[0]))
    if without_fields:
        _warn_ignored("without_fields", without_fields)
        clauses.append(missing_filter(without_fields[0]))
    return and_filters(clauses)


def _warn_ignored(name: str, fields: Sequence[str]) -> None:
    if len(fields) > 1:
        # TODO: decide AND vs OR across several fields with the index owners
        log.warning(
            "%s: only '%s' is applied, ignoring %s", name, fields[0], ", ".join(fields[1:])
        )


__all__ = ["Filter", "compose_filter", "and_filters", "exists_filter", "missing_filter"]
