"""Outbound email senders: log-only (default) and SMTP."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from accounts.domain.exceptions import EmailDeliveryException
from accounts.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class LogOnlyEmailSender:
    """IEmailSender implementation that logs instead of sending email.

    Use when no SMTP is configured (development, tests).
    """

    async def send(self, to_email: str, subject: str, body: str) -> None:
        """Log the message; nothing is delivered."""
        logger.info(
            "Email: would send to 1 recipient (subject=%r)", (subject or "")[:80]
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Email recipient: %s", to_email)
        logger.debug("Email body (first 500 chars): %s", (body or "")[:500])


class SmtpEmailSender:
    """IEmailSender over SMTP. The blocking smtplib session runs in a worker thread."""

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        *,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._from = from_address
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def _build_message(self, to_email: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._from
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as conn:
            if self._use_tls:
                conn.starttls()
            if self._username and self._password:
                conn.login(self._username, self._password)
            conn.send_message(message)

    async def send(self, to_email: str, subject: str, body: str) -> None:
        """Deliver the message; raises EmailDeliveryException on any SMTP or socket failure."""
        message = self._build_message(to_email, subject, body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP delivery to %s failed: %s", self._host, e)
            raise EmailDeliveryException() from e
        logger.info("Email sent (subject=%r)", subject[:80])
