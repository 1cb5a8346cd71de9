"""Ports implemented by infrastructure (DIP).

No runtime imports from accounts.infrastructure or accounts.api.
"""

from accounts.application.interfaces.repositories import (
    IResourceRepository,
    ISoftDeleteRepository,
    IUserRepository,
)
from accounts.application.interfaces.services import (
    IAuthSecurity,
    IEmailSender,
    IEmailTemplateRenderer,
)
from accounts.application.interfaces.store import DocumentCollection, DocumentStore

__all__ = [
    "DocumentCollection",
    "DocumentStore",
    "IAuthSecurity",
    "IEmailSender",
    "IEmailTemplateRenderer",
    "IResourceRepository",
    "ISoftDeleteRepository",
    "IUserRepository",
]
