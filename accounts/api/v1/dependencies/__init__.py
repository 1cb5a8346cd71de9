"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers, never on infrastructure directly.
"""

from accounts.api.v1.dependencies.auth import AuthSecurity, get_auth_security
from accounts.api.v1.dependencies.store import get_document_store, get_email_sender
from accounts.api.v1.dependencies.user_rbac import (
    get_account_mailer,
    get_credential_service,
    get_current_identity,
    get_user_repo,
    get_user_service,
    require_roles,
)

__all__ = [
    "AuthSecurity",
    "get_account_mailer",
    "get_auth_security",
    "get_credential_service",
    "get_current_identity",
    "get_document_store",
    "get_email_sender",
    "get_user_repo",
    "get_user_service",
    "require_roles",
]
