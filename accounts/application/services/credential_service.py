"""Credential lifecycle: session tokens, password change, password reset.

Every password change invalidates previously issued tokens: verification
compares the token's iat with the user's password_changed_at instead of
keeping a revocation list.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from accounts.application.dtos.identity import IdentityContext, IssuedToken
from accounts.application.interfaces.repositories import IUserRepository
from accounts.application.interfaces.services import IAuthSecurity
from accounts.application.services.notifications import AccountMailer
from accounts.domain.enums import Role
from accounts.domain.exceptions import (
    AuthenticationException,
    EmailDeliveryException,
    ResourceNotFoundException,
    ValidationException,
)
from accounts.domain.user import (
    hash_reset_token,
    is_valid_email,
    new_reset_token,
    password_changed_after,
    public_view,
)
from accounts.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "You are not logged in! Please log in to get access"
USER_GONE = "The user you are trying to access does not exist"
PASSWORD_CHANGED = "The user you are trying to access has changed their password"


class CredentialService:
    """Issues and verifies session tokens and drives the password flows."""

    def __init__(
        self,
        user_repo: IUserRepository,
        auth_security: IAuthSecurity,
        mailer: AccountMailer | None = None,
        *,
        cookie_max_age: int,
        reset_ttl: timedelta,
    ) -> None:
        self._user_repo = user_repo
        self._auth_security = auth_security
        self._mailer = mailer
        self._cookie_max_age = cookie_max_age
        self._reset_ttl = reset_ttl

    def issue_token(self, user: dict[str, Any]) -> IssuedToken:
        """Sign a session token bound to the user's id."""
        token = self._auth_security.create_access_token(user["id"])
        return IssuedToken(token=token, cookie_max_age=self._cookie_max_age)

    async def authenticate(self, token: str | None) -> IdentityContext:
        """Resolve the caller of a request from its session token.

        Raises:
            AuthenticationException: token missing, invalid or expired; user
                gone; or password changed after the token was issued.
        """
        if not token:
            raise AuthenticationException(NOT_LOGGED_IN)
        payload = self._auth_security.decode_token(token)
        user = await self._user_repo.find_by_id(str(payload["sub"]))
        if user is None:
            raise AuthenticationException(USER_GONE)
        issued_at = int(payload["iat"])
        if password_changed_after(user, issued_at):
            raise AuthenticationException(PASSWORD_CHANGED)
        return IdentityContext(
            user_id=user["id"], role=Role(user["role"]), user=user, issued_at=issued_at
        )

    async def login(
        self, email: str | None, password: str | None
    ) -> tuple[dict[str, Any], IssuedToken]:
        """Check credentials and issue a session token."""
        if not email or not password:
            raise ValidationException("Please provide email and password")
        if not is_valid_email(email):
            raise ValidationException("Invalid email", field="email")
        user = await self._user_repo.authenticate(email, password)
        if user is None:
            logger.warning("Failed login attempt for %s", email)
            raise AuthenticationException("Invalid credentials")
        return user, self.issue_token(user)

    async def change_password(
        self,
        identity: IdentityContext,
        current_password: str | None,
        password: Any,
        password_confirm: Any,
    ) -> tuple[dict[str, Any], IssuedToken]:
        """Replace the caller's password after checking the current one.

        Tokens issued before this call stop verifying; the returned one works.
        """
        if not current_password:
            raise ValidationException(
                "currentPassword is required.", field="currentPassword"
            )
        if not await self._user_repo.check_password(identity.user_id, current_password):
            raise AuthenticationException("Current password is incorrect")
        user = await self._set_password(identity.user_id, password, password_confirm)
        logger.info("Password changed for user %s", identity.user_id)
        return user, self.issue_token(user)

    async def _set_password(
        self, user_id: str, password: Any, password_confirm: Any
    ) -> dict[str, Any]:
        if password is None:
            raise ValidationException("Password is required", field="password")
        user = await self._user_repo.update(
            {"id": user_id},
            {"password": password, "password_confirm": password_confirm},
        )
        if user is None:
            raise AuthenticationException(USER_GONE)
        return user

    async def create_password_reset_token(self, user: dict[str, Any]) -> str:
        """Store the hash and expiry of a fresh reset token; return the plaintext."""
        plaintext, token_hash, expires_at = new_reset_token(utc_now(), self._reset_ttl)
        await self._user_repo.set_reset_token(user["id"], token_hash, expires_at)
        return plaintext

    async def clear_password_reset_token(self, user: dict[str, Any]) -> None:
        await self._user_repo.set_reset_token(user["id"], None, None)

    async def request_password_reset(
        self, email: str | None, site_url: str, host: str | None = None
    ) -> None:
        """Email a reset link to the owner of email.

        An unknown email is reported as not found. When delivery fails the
        token is cleared before the error propagates, so no undelivered
        token stays usable.
        """
        if not email:
            raise ValidationException("Email is required.", field="email")
        if not is_valid_email(email):
            raise ValidationException("Invalid email.", field="email")
        user = await self._user_repo.find_by_email(email)
        if user is None:
            raise ResourceNotFoundException(
                "user", "There is no user with that email address."
            )
        plaintext = await self.create_password_reset_token(user)
        reset_url = f"{site_url.rstrip('/')}/reset-password/{plaintext}"
        try:
            if self._mailer is None:
                raise EmailDeliveryException()
            await self._mailer.send_password_reset(public_view(user), reset_url, host)
        except EmailDeliveryException:
            await self.clear_password_reset_token(user)
            logger.warning("Password reset email for user %s failed", user["id"])
            raise
        logger.info("Password reset requested for user %s", user["id"])

    async def consume_reset_token(
        self, token: str, password: Any, password_confirm: Any
    ) -> tuple[dict[str, Any], IssuedToken]:
        """Set a new password using a reset token; log the user in."""
        user = await self._user_repo.find_by_reset_token(
            hash_reset_token(token), utc_now()
        )
        if user is None:
            raise ValidationException("Token is invalid or has expired")
        updated = await self._set_password(user["id"], password, password_confirm)
        cleared = await self._user_repo.set_reset_token(updated["id"], None, None)
        logger.info("Password reset completed for user %s", user["id"])
        result = cleared or updated
        return result, self.issue_token(result)
