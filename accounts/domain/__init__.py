"""Domain layer: role enum, exception taxonomy, and user rules.

No dependencies on infrastructure or presentation.
"""

from accounts.domain.enums import Role
from accounts.domain.exceptions import (
    AccountsException,
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    EmailDeliveryException,
    InternalException,
    ResourceNotFoundException,
    ValidationException,
)

__all__ = [
    "Role",
    "AccountsException",
    "AuthenticationException",
    "AuthorizationException",
    "ConflictException",
    "EmailDeliveryException",
    "InternalException",
    "ResourceNotFoundException",
    "ValidationException",
]
