"""Role-based access checks."""

from __future__ import annotations

from collections.abc import Iterable

from accounts.application.dtos.identity import IdentityContext
from accounts.domain.enums import Role
from accounts.domain.exceptions import AuthorizationException


def permits(role: Role | str, allowed: Iterable[Role | str]) -> bool:
    """Return True if role is one of allowed."""
    value = role.value if isinstance(role, Role) else role
    return value in {r.value if isinstance(r, Role) else r for r in allowed}


def require_role(identity: IdentityContext, allowed: Iterable[Role | str]) -> IdentityContext:
    """Return identity if its role is allowed; raise AuthorizationException otherwise."""
    if not permits(identity.role, allowed):
        raise AuthorizationException()
    return identity
