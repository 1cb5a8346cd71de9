"""Email sender factory: log-only or SMTP sender from settings."""

from accounts.application.interfaces.services import IEmailSender
from accounts.core.config import Settings
from accounts.infrastructure.external.email.sender import (
    LogOnlyEmailSender,
    SmtpEmailSender,
)
from accounts.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def create_email_sender(settings: Settings) -> IEmailSender:
    """Return the sender selected by settings.email_backend ('log' or 'smtp')."""
    if settings.email_backend == "smtp":
        logger.debug("Creating SmtpEmailSender for %s:%s", settings.smtp_host, settings.smtp_port)
        return SmtpEmailSender(
            settings.smtp_host,
            settings.smtp_port,
            settings.email_from,
            username=settings.smtp_username,
            password=(
                settings.smtp_password.get_secret_value()
                if settings.smtp_password
                else None
            ),
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    return LogOnlyEmailSender()
