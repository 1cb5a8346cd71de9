"""Token dependencies (composition root)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from accounts.domain.exceptions import AuthenticationException
from accounts.infrastructure.security.jwt import (
    ExpiredTokenError,
    InvalidTokenError,
    create_access_token,
    verify_token,
)


class AuthSecurity:
    """Token signing and verification provided via DI (no direct infra imports in services)."""

    def create_access_token(
        self, subject: str, issued_at: datetime | None = None
    ) -> str:
        return create_access_token(subject, issued_at=issued_at)

    def decode_token(self, token: str) -> dict[str, Any]:
        try:
            return verify_token(token)
        except ExpiredTokenError as e:
            raise AuthenticationException(
                "Your token has expired! Please log in again."
            ) from e
        except InvalidTokenError as e:
            raise AuthenticationException("Invalid token, please login again.") from e


def get_auth_security() -> AuthSecurity:
    """Auth token creation and verification (composition root)."""
    return AuthSecurity()
