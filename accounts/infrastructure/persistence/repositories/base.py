"""Base repository: generic document CRUD and lifecycle functions.

A repository wraps one collection of a DocumentStore. Subclasses customise
behaviour through three lifecycle functions invoked at fixed points:

- before_create(data): validate / normalise a new document
- before_update(changes, validate): validate / normalise a patch
- on_read(filter_, include_deleted): rewrite the filter of every
  filter-based operation (find, update, delete)

and through class attributes: unique_fields, field_casts, secret_fields,
hidden_fields.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, ClassVar

from accounts.application.dtos.query import VERSION_FIELD, Projection, QuerySpec
from accounts.application.interfaces.store import DocumentStore
from accounts.infrastructure.exceptions import CastError, DuplicateKeyError
from accounts.infrastructure.persistence.filters import ID_FIELD, map_filter_values
from accounts.shared.utils.datetime import parse_datetime, utc_now
from accounts.shared.utils.generators import generate_cuid

_IMMUTABLE_FIELDS = frozenset({ID_FIELD, "created_at", VERSION_FIELD})


def parse_bool(value: str) -> bool:
    """Parse a query-string boolean ('true'/'false'/'1'/'0')."""
    lowered = value.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class BaseRepository:
    """Generic repository over one document collection."""

    collection_name: ClassVar[str]
    unique_fields: ClassVar[tuple[str, ...]] = ()
    # Converters for string values arriving from query parameters
    field_casts: ClassVar[Mapping[str, Callable[[str], Any]]] = {
        "created_at": parse_datetime,
        "updated_at": parse_datetime,
    }
    secret_fields: ClassVar[tuple[str, ...]] = ()
    hidden_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, store: DocumentStore) -> None:
        self._coll = store.collection(self.collection_name)

    # -- lifecycle functions -------------------------------------------------

    async def before_create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return dict(data)

    async def before_update(
        self, changes: Mapping[str, Any], *, validate: bool = True
    ) -> dict[str, Any]:
        return dict(changes)

    def on_read(
        self, filter_: dict[str, Any], *, include_deleted: bool = False
    ) -> dict[str, Any]:
        return filter_

    # -- helpers -------------------------------------------------------------

    def _cast(self, field: str, value: Any) -> Any:
        caster = self.field_casts.get(field)
        if caster is None or not isinstance(value, str):
            return value
        try:
            return caster(value)
        except ValueError as e:
            raise CastError(field, value) from e

    def _read_filter(
        self, filter_: Mapping[str, Any], include_deleted: bool
    ) -> dict[str, Any]:
        # on_read sees raw values: a query-string "true" never counts as an explicit flag
        visible = self.on_read(dict(filter_), include_deleted=include_deleted)
        return map_filter_values(visible, self._cast)

    def present(
        self,
        document: dict[str, Any],
        projection: Projection | None = None,
        *,
        include_secrets: bool = False,
    ) -> dict[str, Any]:
        """Return the caller-facing view of a stored document."""
        projection = projection or Projection.default()
        out = dict(document)
        if not include_secrets:
            for field in self.secret_fields:
                out.pop(field, None)
        for field in self.hidden_fields:
            if not projection.explicitly_includes(field):
                out.pop(field, None)
        for field in projection.exclude:
            out.pop(field, None)
        return out

    async def _check_unique(
        self, document: Mapping[str, Any], exclude_id: str | None = None
    ) -> None:
        # raw collection: soft-deleted documents keep their unique values
        for field in self.unique_fields:
            value = document.get(field)
            if value is None:
                continue
            existing = await self._coll.find_one({field: value})
            if existing is not None and existing.get(ID_FIELD) != exclude_id:
                raise DuplicateKeyError({field: value})

    # -- operations ----------------------------------------------------------

    async def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """Execute a shaped read and return presented documents.

        Conditions and sort keys on secret fields are ignored: results must
        not reveal anything about values that are never returned.
        """
        filter_ = {k: v for k, v in spec.filter.items() if k not in self.secret_fields}
        sort = tuple(key for key in spec.sort if key.field not in self.secret_fields)
        docs = await self._coll.find(
            self._read_filter(filter_, spec.include_deleted),
            sort=sort,
            projection=spec.projection,
            skip=spec.skip,
            limit=spec.limit,
        )
        return [self.present(d, spec.projection) for d in docs]

    async def find_by_id(
        self,
        entity_id: str,
        *,
        projection: Projection | None = None,
        include_deleted: bool = False,
    ) -> dict[str, Any] | None:
        """Return one presented document by id, or None."""
        docs = await self._coll.find(
            self._read_filter({ID_FIELD: entity_id}, include_deleted),
            projection=projection,
            limit=1,
        )
        return self.present(docs[0], projection) if docs else None

    async def find_one(
        self,
        filter_: Mapping[str, Any],
        *,
        include_secrets: bool = False,
        include_deleted: bool = False,
    ) -> dict[str, Any] | None:
        """Return the first matching document, or None."""
        doc = await self._coll.find_one(self._read_filter(filter_, include_deleted))
        if doc is None:
            return None
        return self.present(doc, include_secrets=include_secrets)

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Validate, stamp and insert a new document; return its public view."""
        document = await self.before_create(data)
        for field in _IMMUTABLE_FIELDS:
            document.pop(field, None)
        await self._check_unique(document)
        now = utc_now()
        document.update(
            {ID_FIELD: generate_cuid(), "created_at": now, "updated_at": now, VERSION_FIELD: 0}
        )
        stored = await self._coll.insert(document)
        return self.present(stored)

    async def update(
        self,
        filter_: Mapping[str, Any],
        changes: Mapping[str, Any],
        *,
        validate: bool = True,
        include_deleted: bool = False,
        include_secrets: bool = False,
    ) -> dict[str, Any] | None:
        """Apply changes to the first matching document; return it updated, or None.

        validate=False skips before_update's input validation; it is used for
        internal writes (flags, reset-token fields) that never come from clients.
        """
        read_filter = self._read_filter(filter_, include_deleted)
        current = await self._coll.find_one(read_filter)
        if current is None:
            return None
        patch = await self.before_update(changes, validate=validate)
        for field in _IMMUTABLE_FIELDS:
            patch.pop(field, None)
        await self._check_unique(patch, exclude_id=current[ID_FIELD])
        patch["updated_at"] = utc_now()
        patch[VERSION_FIELD] = int(current.get(VERSION_FIELD) or 0) + 1
        updated = await self._coll.update_one(
            {**read_filter, ID_FIELD: current[ID_FIELD]}, patch
        )
        if updated is None:
            return None
        return self.present(updated, include_secrets=include_secrets)

    async def delete(self, filter_: Mapping[str, Any]) -> dict[str, Any] | None:
        """Physically remove the first matching document; return it, or None."""
        removed = await self._coll.delete_one(self._read_filter(filter_, False))
        return self.present(removed) if removed is not None else None
