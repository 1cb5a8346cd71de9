"""Framework-agnostic input and output of generic resource handlers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from accounts.application.dtos.identity import IdentityContext


@dataclass(frozen=True)
class ResourceRequest:
    """Everything a generic resource handler reads.

    Attributes:
        identity: Authenticated caller, or None on public routes.
        resource_id: Path id for single-document operations.
        query: Parsed query parameters (strings, lists, nested maps).
        body: Parsed JSON body for create/update.
        base_filter: Filter the route pins regardless of query (e.g. trash).
        include_deleted: Let reads see soft-deleted documents too.
    """

    identity: IdentityContext | None = None
    resource_id: str | None = None
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None
    base_filter: Mapping[str, Any] = field(default_factory=dict)
    include_deleted: bool = False


@dataclass(frozen=True)
class Outcome:
    """Status code and JSON body produced by a handler (body None means empty)."""

    status_code: int
    body: dict[str, Any] | None = None

    @classmethod
    def success(cls, status_code: int = 200, **payload: Any) -> "Outcome":
        return cls(status_code, {"status": "success", **payload})

    @classmethod
    def no_content(cls) -> "Outcome":
        return cls(204, None)
