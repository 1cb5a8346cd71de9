"""User, role and auth dependencies (composition root)."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accounts.application.dtos.identity import IdentityContext
from accounts.application.interfaces.services import IEmailSender
from accounts.application.interfaces.store import DocumentStore
from accounts.application.services.access_control import require_role
from accounts.application.services.credential_service import CredentialService
from accounts.application.services.notifications import AccountMailer
from accounts.application.services.user_service import UserService
from accounts.core.config import get_settings
from accounts.domain.enums import Role
from accounts.infrastructure.external.email import EmailTemplateRenderer
from accounts.infrastructure.persistence.repositories import UserRepository

from . import auth
from .store import get_document_store, get_email_sender

_http_bearer = HTTPBearer(auto_error=False)


async def get_user_repo(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> UserRepository:
    """User repository over the configured document store."""
    return UserRepository(store)


def get_account_mailer(
    sender: Annotated[IEmailSender, Depends(get_email_sender)],
) -> AccountMailer:
    """Welcome and password reset emails (composition root)."""
    settings = get_settings()
    return AccountMailer(
        sender,
        EmailTemplateRenderer(),
        app_name=settings.app_name,
        support_email=settings.email_support,
        reset_expire_minutes=settings.password_reset_expire_minutes,
    )


def get_credential_service(
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
    mailer: Annotated[AccountMailer, Depends(get_account_mailer)],
    auth_security: auth.AuthSecurity = Depends(auth.get_auth_security),
) -> CredentialService:
    """Login, token verification and password flows (composition root)."""
    settings = get_settings()
    return CredentialService(
        user_repo,
        auth_security,
        mailer,
        cookie_max_age=settings.cookie_expire_minutes * 60,
        reset_ttl=timedelta(minutes=settings.password_reset_expire_minutes),
    )


def get_user_service(
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
    mailer: Annotated[AccountMailer, Depends(get_account_mailer)],
) -> UserService:
    """User resource handlers (composition root)."""
    return UserService(user_repo, mailer)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
) -> IdentityContext:
    """Resolve the caller from the Bearer token; raise 401 if missing or invalid.

    Only the Authorization header is read; the session cookie is set for
    browser clients but never consulted here.
    """
    token = credentials.credentials if credentials else None
    return await credential_service.authenticate(token)


def require_roles(*roles: Role):
    """Dependency factory: require a valid token whose user has one of roles."""

    async def _require(
        identity: Annotated[IdentityContext, Depends(get_current_identity)],
    ) -> IdentityContext:
        return require_role(identity, roles)

    return _require
