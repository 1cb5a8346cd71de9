"""Immutable description of a read against a document collection.

A QuerySpec is built step by step by accounts.application.services.query_shaper
and only materialized when a repository executes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

VERSION_FIELD = "__v"
CREATED_AT_FIELD = "created_at"
FILTER_OPERATORS = frozenset({"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in"})

Direction = Literal["asc", "desc"]


@dataclass(frozen=True)
class SortKey:
    """One (field, direction) pair of a sort order."""

    field: str
    direction: Direction = "asc"

    @classmethod
    def parse(cls, token: str) -> "SortKey":
        """Parse 'name' (ascending) or '-name' (descending)."""
        token = token.strip()
        if token.startswith("-"):
            return cls(token[1:], "desc")
        if token.startswith("+"):
            token = token[1:]
        return cls(token, "asc")


@dataclass(frozen=True)
class Projection:
    """Field selection: either an include list or an exclude list, never both.

    An include list always keeps the document id.
    """

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.include and self.exclude:
            raise ValueError("Projection cannot mix included and excluded fields")

    @classmethod
    def default(cls) -> "Projection":
        """Everything except the internal version field."""
        return cls(exclude=(VERSION_FIELD,))

    def explicitly_includes(self, name: str) -> bool:
        return name in self.include


@dataclass(frozen=True)
class QuerySpec:
    """Filter, sort order, projection and window of a read.

    limit=None means no limit. include_deleted bypasses the soft-delete
    visibility rule for resources that have one.
    """

    filter: dict[str, Any] = field(default_factory=dict)
    sort: tuple[SortKey, ...] = ()
    projection: Projection = field(default_factory=Projection.default)
    skip: int = 0
    limit: int | None = None
    include_deleted: bool = False

    def with_filter(self, filter_: dict[str, Any]) -> "QuerySpec":
        return replace(self, filter=dict(filter_))

    def with_sort(self, sort: tuple[SortKey, ...]) -> "QuerySpec":
        return replace(self, sort=tuple(sort))

    def with_projection(self, projection: Projection) -> "QuerySpec":
        return replace(self, projection=projection)

    def with_window(self, skip: int, limit: int | None) -> "QuerySpec":
        return replace(self, skip=skip, limit=limit)
