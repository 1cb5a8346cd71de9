"""Repository interfaces (ports) used by the generic resource handlers."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

from accounts.application.dtos.query import Projection, QuerySpec


class IResourceRepository(Protocol):
    """Store handle of a resource: shaped reads plus filter-based writes."""

    async def find(self, spec: QuerySpec) -> list[dict[str, Any]]: ...

    async def find_by_id(
        self,
        entity_id: str,
        *,
        projection: Projection | None = None,
        include_deleted: bool = False,
    ) -> dict[str, Any] | None: ...

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]: ...

    async def update(
        self,
        filter_: Mapping[str, Any],
        changes: Mapping[str, Any],
        *,
        validate: bool = True,
        include_deleted: bool = False,
        include_secrets: bool = False,
    ) -> dict[str, Any] | None: ...

    async def delete(self, filter_: Mapping[str, Any]) -> dict[str, Any] | None: ...


class ISoftDeleteRepository(IResourceRepository, Protocol):
    """Resource whose documents carry a deleted flag."""

    async def soft_delete(self, entity_id: str) -> dict[str, Any] | None: ...

    async def restore(self, entity_id: str) -> dict[str, Any] | None: ...


class IUserRepository(ISoftDeleteRepository, Protocol):
    """Identity documents plus the credential lookups."""

    async def find_by_email(
        self, email: str, *, include_secrets: bool = False
    ) -> dict[str, Any] | None: ...

    async def find_by_reset_token(
        self, token_hash: str, now: datetime
    ) -> dict[str, Any] | None: ...

    async def authenticate(self, email: str, password: str) -> dict[str, Any] | None: ...

    async def check_password(self, user_id: str, password: str) -> bool: ...

    async def set_reset_token(
        self, user_id: str, token_hash: str | None, expires_at: datetime | None
    ) -> dict[str, Any] | None: ...
