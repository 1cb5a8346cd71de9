"""Document store ports.

A store is an opaque collection of JSON-like documents reachable through
filter-based find / insert / update / delete. Filters use the operator
language of accounts.infrastructure.persistence.filters:

    {"email": "a@x.com"}                 equality
    {"age": {"$gte": 18, "$lt": 65}}     relational operators ($eq $ne $gt $gte $lt $lte $in)
    {"role": ["admin", "super_admin"]}   list value means $in
    {"id": "..."}                        the document id

Operations on a single collection are atomic per document; there are no
multi-document transactions.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from accounts.application.dtos.query import Projection, SortKey


class DocumentCollection(Protocol):
    """One named collection of documents."""

    async def find(
        self,
        filter_: dict[str, Any],
        *,
        sort: Sequence[SortKey] = (),
        projection: Projection | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching documents, sorted, projected and windowed. limit=None means all."""

    async def find_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first matching document, or None."""

    async def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        """Store a new document (id must be set) and return it."""

    async def update_one(
        self, filter_: dict[str, Any], changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Apply changes to the first matching document; return it updated, or None."""

    async def delete_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        """Remove the first matching document; return what was removed, or None."""


class DocumentStore(Protocol):
    """Factory of collections plus lifecycle."""

    def collection(self, name: str) -> DocumentCollection:
        """Return the collection called name (created on first write)."""

    async def aclose(self) -> None:
        """Release connections held by the store."""
