"""Account emails: welcome on creation, password reset link."""

from __future__ import annotations

import logging
from typing import Any

from accounts.application.interfaces.services import (
    IEmailSender,
    IEmailTemplateRenderer,
)

logger = logging.getLogger(__name__)


class AccountMailer:
    """Renders and sends the account emails through an IEmailSender."""

    def __init__(
        self,
        sender: IEmailSender,
        renderer: IEmailTemplateRenderer,
        *,
        app_name: str,
        support_email: str,
        reset_expire_minutes: int,
    ) -> None:
        self._sender = sender
        self._renderer = renderer
        self._app_name = app_name
        self._support_email = support_email
        self._reset_expire_minutes = reset_expire_minutes

    async def _send(self, template_key: str, user: dict[str, Any], **context: Any) -> None:
        subject, body = self._renderer.render(
            template_key,
            user=user,
            app_name=self._app_name,
            support_email=self._support_email,
            expires_minutes=self._reset_expire_minutes,
            **context,
        )
        await self._sender.send(user["email"], subject, body)

    async def send_welcome(
        self, user: dict[str, Any], url: str, host: str | None = None
    ) -> None:
        """Greet a newly created user. The password is never part of the message."""
        await self._send("welcome", user, url=url, host=host)
        logger.info("Welcome email sent to user %s", user.get("id"))

    async def send_password_reset(
        self, user: dict[str, Any], reset_url: str, host: str | None = None
    ) -> None:
        await self._send("password_reset", user, url=reset_url, host=host)
