"""Document store and email sender dependencies (composition root).

Both are created in the app lifespan and kept on app.state; tests replace
them through app.dependency_overrides.
"""

from __future__ import annotations

from fastapi import Request

from accounts.application.interfaces.services import IEmailSender
from accounts.application.interfaces.store import DocumentStore
from accounts.domain.exceptions import InternalException
from accounts.infrastructure.external.email import LogOnlyEmailSender


def get_document_store(request: Request) -> DocumentStore:
    """Document store created at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise InternalException("Document store is not initialized")
    return store


def get_email_sender(request: Request) -> IEmailSender:
    """Email sender created at startup; log-only when none was configured."""
    sender = getattr(request.app.state, "email_sender", None)
    return sender if sender is not None else LogOnlyEmailSender()
