"""JWT session token creation and verification.

Uses accounts.core.config for secret and algorithm. Tokens carry sub (user
id), iat (issued-at, epoch seconds) and exp.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import ExpiredSignatureError, JWTError, jwt

from accounts.core.config import get_settings


class InvalidTokenError(ValueError):
    """Token is malformed, has a bad signature, or lacks required claims."""


class ExpiredTokenError(InvalidTokenError):
    """Token signature is valid but exp is in the past."""


def create_access_token(
    subject: str,
    issued_at: datetime | None = None,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed JWT for subject.

    Args:
        subject: User id placed in the sub claim.
        issued_at: Value of iat; defaults to now.
        expires_delta: Optional TTL; else uses settings.access_token_expire_minutes.
        extra_claims: Additional claims to encode.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    issued = issued_at or datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, Any] = dict(extra_claims or {})
    to_encode.update(
        {
            "sub": subject,
            "iat": int(issued.timestamp()),
            "exp": int((issued + expires_delta).timestamp()),
        }
    )
    encoded = jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Enforces presence of exp, iat and sub.

    Raises:
        ExpiredTokenError: If the token has expired.
        InvalidTokenError: If the token is invalid or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True, "require_iat": True},
        )
    except ExpiredSignatureError as e:
        raise ExpiredTokenError("Token has expired") from e
    except JWTError as e:
        raise InvalidTokenError(f"Invalid token: {e!s}") from e
    if not payload.get("sub"):
        raise InvalidTokenError("Token missing required claim: sub")
    return payload
