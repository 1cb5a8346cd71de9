"""Token signing and password hashing."""

from accounts.infrastructure.security.jwt import (
    ExpiredTokenError,
    InvalidTokenError,
    create_access_token,
    verify_token,
)
from accounts.infrastructure.security.password import (
    get_password_hash,
    verify_password,
)

__all__ = [
    "ExpiredTokenError",
    "InvalidTokenError",
    "create_access_token",
    "get_password_hash",
    "verify_password",
    "verify_token",
]
