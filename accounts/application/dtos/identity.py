"""Request-scoped identity, resolved from a verified session token."""

from dataclasses import dataclass, field
from typing import Any

from accounts.domain.enums import Role


@dataclass(frozen=True)
class IdentityContext:
    """The caller of a request. Passed explicitly; never stored globally.

    Attributes:
        user_id: Id of the authenticated user document.
        role: Role used by access control.
        user: Public view of the user document (no secrets).
        issued_at: iat claim of the token that resolved this identity.
    """

    user_id: str
    role: Role
    user: dict[str, Any] = field(default_factory=dict, compare=False)
    issued_at: int | None = None


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed session token and how long its cookie should live."""

    token: str
    cookie_max_age: int
