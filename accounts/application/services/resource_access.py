"""Generic CRUD handlers built from a resource descriptor.

Each builder returns an async handler taking a ResourceRequest and
returning an Outcome. Handlers never catch: failures propagate to the
exception handlers registered on the app.

Example:
    users = ResourceDescriptor("user", user_repo)
    outcome = await list_all(users)(ResourceRequest(query={"sort": "email"}))
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from accounts.application.dtos.query import QuerySpec
from accounts.application.dtos.resource import Outcome, ResourceRequest
from accounts.application.interfaces.repositories import (
    IResourceRepository,
    ISoftDeleteRepository,
)
from accounts.application.services.query_shaper import QueryShaper
from accounts.domain.exceptions import ResourceNotFoundException, ValidationException

Handler = Callable[[ResourceRequest], Awaitable[Outcome]]


@dataclass(frozen=True)
class Relation:
    """A field holding the id (or ids) of documents in another repository."""

    field: str
    repository: IResourceRepository


@dataclass(frozen=True)
class ResourceDescriptor:
    """Name, store handle and eagerly resolved relations of a resource."""

    name: str
    repository: IResourceRepository
    relations: Sequence[Relation] = field(default_factory=tuple)
    plural: str | None = None

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def collection_key(self) -> str:
        return (self.plural or f"{self.name}s").lower()

    def not_found(self) -> ResourceNotFoundException:
        return ResourceNotFoundException(self.key)


async def _resolve_relations(
    resource: ResourceDescriptor, document: dict[str, Any]
) -> dict[str, Any]:
    for relation in resource.relations:
        ref = document.get(relation.field)
        if ref is None:
            continue
        if isinstance(ref, list):
            resolved = [await relation.repository.find_by_id(r) for r in ref]
            document[relation.field] = [r for r in resolved if r is not None]
        else:
            document[relation.field] = await relation.repository.find_by_id(ref)
    return document


def _require_id(request: ResourceRequest) -> str:
    if not request.resource_id:
        raise ValidationException("Resource id is required", field="id")
    return request.resource_id


def list_all(resource: ResourceDescriptor) -> Handler:
    """Shaped read of the whole collection, pre-seeded with the request's base filter.

    Soft-deleted documents are left out unless request.include_deleted is set.
    """

    async def handler(request: ResourceRequest) -> Outcome:
        spec = (
            QueryShaper(request.query)
            .filter(request.base_filter)
            .limit_fields()
            .sort()
            .paginate()
            .spec
        )
        docs = await resource.repository.find(
            replace(spec, include_deleted=request.include_deleted)
        )
        docs = [await _resolve_relations(resource, d) for d in docs]
        return Outcome.success(
            results=len(docs), data={resource.collection_key: docs}
        )

    return handler


def get_one(resource: ResourceDescriptor) -> Handler:
    """Read one document by id; only the fields parameter of the query applies."""

    async def handler(request: ResourceRequest) -> Outcome:
        spec: QuerySpec = QueryShaper(request.query).limit_fields().spec
        doc = await resource.repository.find_by_id(
            _require_id(request),
            projection=spec.projection,
            include_deleted=request.include_deleted,
        )
        if doc is None:
            raise resource.not_found()
        doc = await _resolve_relations(resource, doc)
        return Outcome.success(data={resource.key: doc})

    return handler


def create_one(resource: ResourceDescriptor) -> Handler:
    async def handler(request: ResourceRequest) -> Outcome:
        doc = await resource.repository.create(dict(request.body or {}))
        return Outcome.success(201, data={resource.key: doc})

    return handler


def update_one(resource: ResourceDescriptor) -> Handler:
    """Patch the fields present in the body, re-running validation."""

    async def handler(request: ResourceRequest) -> Outcome:
        doc = await resource.repository.update(
            {"id": _require_id(request)}, dict(request.body or {}), validate=True
        )
        if doc is None:
            raise resource.not_found()
        return Outcome.success(data={resource.key: doc})

    return handler


def delete_one(resource: ResourceDescriptor) -> Handler:
    """Physically remove a document."""

    async def handler(request: ResourceRequest) -> Outcome:
        doc = await resource.repository.delete({"id": _require_id(request)})
        if doc is None:
            raise resource.not_found()
        return Outcome.no_content()

    return handler


def soft_delete_one(resource: ResourceDescriptor) -> Handler:
    """Flag a live document as deleted."""

    async def handler(request: ResourceRequest) -> Outcome:
        repository: ISoftDeleteRepository = resource.repository  # type: ignore[assignment]
        doc = await repository.soft_delete(_require_id(request))
        if doc is None:
            raise resource.not_found()
        return Outcome.no_content()

    return handler


def restore_one(resource: ResourceDescriptor) -> Handler:
    """Flag a deleted document as live again."""

    async def handler(request: ResourceRequest) -> Outcome:
        repository: ISoftDeleteRepository = resource.repository  # type: ignore[assignment]
        doc = await repository.restore(_require_id(request))
        if doc is None:
            raise ResourceNotFoundException(
                resource.key,
                f"{resource.name.capitalize()} Not found or Already restored.",
            )
        return Outcome.success(data={resource.key: doc})

    return handler
