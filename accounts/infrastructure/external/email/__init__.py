"""Outbound email: senders, templates, factory."""

from accounts.infrastructure.external.email.factory import create_email_sender
from accounts.infrastructure.external.email.sender import (
    LogOnlyEmailSender,
    SmtpEmailSender,
)
from accounts.infrastructure.external.email.templates import EmailTemplateRenderer

__all__ = [
    "EmailTemplateRenderer",
    "LogOnlyEmailSender",
    "SmtpEmailSender",
    "create_email_sender",
]
