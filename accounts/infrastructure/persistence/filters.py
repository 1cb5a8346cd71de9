"""Evaluate store filters, sort orders and projections against plain documents.

Used by the in-memory store for everything, and by the Firestore store for
the parts the REST API cannot express (id lookups, exclusions).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from accounts.application.dtos.query import Projection, SortKey

ID_FIELD = "id"


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "$eq":
        return actual == expected
    if op == "$ne":
        return actual != expected
    if op == "$in":
        return actual in expected
    if actual is None or expected is None:
        return False
    try:
        if op == "$gt":
            return actual > expected
        if op == "$gte":
            return actual >= expected
        if op == "$lt":
            return actual < expected
        if op == "$lte":
            return actual <= expected
    except TypeError:
        # mixed types never match, like a typed store would
        return False
    raise ValueError(f"Unsupported filter operator: {op!r}")


def is_operator_map(value: Any) -> bool:
    """Return True for {'$gt': ...}-style condition maps."""
    return isinstance(value, dict) and bool(value) and all(
        isinstance(k, str) and k.startswith("$") for k in value
    )


def normalize_condition(value: Any) -> dict[str, Any]:
    """Return the condition as an operator map ({'$eq': v}, {'$in': [...]}, ...)."""
    if is_operator_map(value):
        return value
    if isinstance(value, (list, tuple)):
        return {"$in": list(value)}
    return {"$eq": value}


def matches(document: dict[str, Any], filter_: dict[str, Any]) -> bool:
    """Return True if document satisfies every condition of filter_ (conjunction)."""
    for field, condition in filter_.items():
        actual = document.get(field)
        for op, expected in normalize_condition(condition).items():
            if not _compare(op, actual, expected):
                return False
    return True


def _sort_value(value: Any) -> tuple[int, Any]:
    # None sorts first ascending, like a document store's null ordering
    return (0, 0) if value is None else (1, value)


def sort_documents(
    documents: Iterable[dict[str, Any]], sort: Sequence[SortKey]
) -> list[dict[str, Any]]:
    """Return a new list ordered by sort (first key most significant)."""
    ordered = list(documents)
    for key in reversed(sort):
        ordered.sort(
            key=lambda d, f=key.field: _sort_value(d.get(f)),
            reverse=key.direction == "desc",
        )
    return ordered


def apply_projection(
    document: dict[str, Any], projection: Projection | None
) -> dict[str, Any]:
    """Return a copy of document restricted by projection (id always kept on include)."""
    if projection is None:
        return dict(document)
    if projection.include:
        keep = set(projection.include) | {ID_FIELD}
        return {k: v for k, v in document.items() if k in keep}
    return {k: v for k, v in document.items() if k not in projection.exclude}


def map_filter_values(
    filter_: dict[str, Any], cast: Callable[[str, Any], Any]
) -> dict[str, Any]:
    """Return filter_ with every leaf value passed through cast(field, value)."""
    out: dict[str, Any] = {}
    for field, condition in filter_.items():
        if is_operator_map(condition):
            out[field] = {
                op: [cast(field, v) for v in val]
                if isinstance(val, (list, tuple))
                else cast(field, val)
                for op, val in condition.items()
            }
        elif isinstance(condition, (list, tuple)):
            out[field] = [cast(field, v) for v in condition]
        else:
            out[field] = cast(field, condition)
    return out
