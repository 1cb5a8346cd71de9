"""DocumentStore backed by the Firestore REST client.

Document ids live in the Firestore document name, not in its fields; the
id is stripped on write and added back on read. Filters are pushed down
as ANDed field filters. Conditions the REST API cannot express (id
lookups, exclusion projections) are evaluated locally with
accounts.infrastructure.persistence.filters.

update_one and delete_one are a query followed by a write on the matched
document, not a single atomic find-and-modify. The PATCH carries an
exists precondition so a concurrently deleted document is not recreated.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from accounts.application.dtos.query import Projection, SortKey
from accounts.infrastructure.firestore._rest_client import (
    CollectionReference,
    DocumentSnapshot,
    FirestoreRESTClient,
    build_structured_query,
)
from accounts.infrastructure.persistence.filters import (
    ID_FIELD,
    apply_projection,
    matches,
    normalize_condition,
)

_NAME_PATH = "__name__"


def _to_document(snapshot: DocumentSnapshot) -> dict[str, Any]:
    return {ID_FIELD: snapshot.id, **snapshot.to_dict()}


def _conditions(filter_: dict[str, Any]) -> list[tuple[str, str, Any]]:
    """Translate a filter map to (field, op, value) triples for runQuery."""
    out: list[tuple[str, str, Any]] = []
    for field, condition in filter_.items():
        for op, value in normalize_condition(condition).items():
            if op == "$ne" and isinstance(value, bool):
                # a boolean has exactly one other value
                out.append((field, "$eq", not value))
            else:
                out.append((field, op, list(value) if op == "$in" else value))
    return out


class FirestoreCollection:
    """DocumentCollection over one Firestore collection."""

    def __init__(self, ref: CollectionReference) -> None:
        self._ref = ref

    @property
    def name(self) -> str:
        return self._ref.id

    async def _find_by_id(
        self, doc_id: str, filter_: dict[str, Any]
    ) -> dict[str, Any] | None:
        snapshot = await self._ref.document(doc_id).get()
        if snapshot is None:
            return None
        doc = _to_document(snapshot)
        return doc if matches(doc, filter_) else None

    async def find(
        self,
        filter_: dict[str, Any],
        *,
        sort: Sequence[SortKey] = (),
        projection: Projection | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        id_condition = filter_.get(ID_FIELD)
        if isinstance(id_condition, str):
            doc = await self._find_by_id(id_condition, filter_)
            if doc is None or skip > 0 or limit == 0:
                return []
            return [apply_projection(doc, projection)]

        pushed = {k: v for k, v in filter_.items() if k != ID_FIELD}
        local = {ID_FIELD: id_condition} if ID_FIELD in filter_ else None
        select = None
        if projection is not None and projection.include:
            select = [f for f in projection.include if f != ID_FIELD]
        order_by = [
            (_NAME_PATH if key.field == ID_FIELD else key.field, key.direction)
            for key in sort
        ]
        structured = build_structured_query(
            self._ref.id,
            _conditions(pushed),
            order_by,
            select=select,
            # windowing moves client-side when part of the filter is evaluated locally
            offset=0 if local else skip,
            limit=None if local else limit,
        )
        docs = [_to_document(s) async for s in self._ref.run_query(structured)]
        if local:
            docs = [d for d in docs if matches(d, local)]
            end = None if limit is None else skip + limit
            docs = docs[skip:end]
        return [apply_projection(d, projection) for d in docs]

    async def find_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        found = await self.find(filter_, limit=1)
        return found[0] if found else None

    async def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        data = {k: v for k, v in document.items() if k != ID_FIELD}
        await self._ref.create(document[ID_FIELD], data)
        return dict(document)

    async def update_one(
        self, filter_: dict[str, Any], changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        current = await self.find_one(filter_)
        if current is None:
            return None
        data = {k: v for k, v in changes.items() if k != ID_FIELD}
        if not data:
            return current
        snapshot = await self._ref.document(current[ID_FIELD]).update(data)
        return _to_document(snapshot) if snapshot is not None else None

    async def delete_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        current = await self.find_one(filter_)
        if current is None:
            return None
        await self._ref.document(current[ID_FIELD]).delete()
        return current


class FirestoreDocumentStore:
    """DocumentStore over a FirestoreRESTClient."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    def collection(self, name: str) -> FirestoreCollection:
        return FirestoreCollection(self._client.collection(name))

    async def aclose(self) -> None:
        await self._client.aclose()
