"""DTOs for application services (no dependency on the web framework or store)."""

from accounts.application.dtos.identity import IdentityContext, IssuedToken
from accounts.application.dtos.query import (
    CREATED_AT_FIELD,
    VERSION_FIELD,
    Projection,
    QuerySpec,
    SortKey,
)
from accounts.application.dtos.resource import Outcome, ResourceRequest

__all__ = [
    "CREATED_AT_FIELD",
    "IdentityContext",
    "IssuedToken",
    "Outcome",
    "Projection",
    "QuerySpec",
    "ResourceRequest",
    "SortKey",
    "VERSION_FIELD",
]
