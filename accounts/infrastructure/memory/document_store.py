"""In-process document store for tests and local development.

Each collection is a dict of id -> document guarded by an asyncio.Lock, so
find-then-write operations are atomic per document like a real store's
find-and-modify. Documents are deep-copied in and out; callers never share
state with the store.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Sequence
from typing import Any

from accounts.application.dtos.query import Projection, SortKey
from accounts.infrastructure.exceptions import DocumentExistsError
from accounts.infrastructure.persistence.filters import (
    ID_FIELD,
    apply_projection,
    matches,
    sort_documents,
)


class InMemoryCollection:
    """A named collection held in memory."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = asyncio.Lock()
        self._documents: dict[str, dict[str, Any]] = {}

    def _first_match(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        doc_id = filter_.get(ID_FIELD)
        if isinstance(doc_id, str):
            doc = self._documents.get(doc_id)
            return doc if doc is not None and matches(doc, filter_) else None
        for doc in self._documents.values():
            if matches(doc, filter_):
                return doc
        return None

    async def find(
        self,
        filter_: dict[str, Any],
        *,
        sort: Sequence[SortKey] = (),
        projection: Projection | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        async with self._lock:
            found = [d for d in self._documents.values() if matches(d, filter_)]
            ordered = sort_documents(found, sort)
            end = None if limit is None else skip + limit
            window = ordered[skip:end]
            return [copy.deepcopy(apply_projection(d, projection)) for d in window]

    async def find_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        async with self._lock:
            doc = self._first_match(filter_)
            return copy.deepcopy(doc) if doc is not None else None

    async def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        doc_id = document[ID_FIELD]
        async with self._lock:
            if doc_id in self._documents:
                raise DocumentExistsError(f"Document {doc_id!r} already exists")
            self._documents[doc_id] = copy.deepcopy(document)
            return copy.deepcopy(document)

    async def update_one(
        self, filter_: dict[str, Any], changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        async with self._lock:
            doc = self._first_match(filter_)
            if doc is None:
                return None
            doc.update(copy.deepcopy(changes))
            return copy.deepcopy(doc)

    async def delete_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        async with self._lock:
            doc = self._first_match(filter_)
            if doc is None:
                return None
            return self._documents.pop(doc[ID_FIELD])

    def __len__(self) -> int:
        return len(self._documents)


class InMemoryDocumentStore:
    """DocumentStore keeping every collection in process memory."""

    def __init__(self) -> None:
        self._collections: dict[str, InMemoryCollection] = {}

    def collection(self, name: str) -> InMemoryCollection:
        if name not in self._collections:
            self._collections[name] = InMemoryCollection(name)
        return self._collections[name]

    async def aclose(self) -> None:
        self._collections.clear()
