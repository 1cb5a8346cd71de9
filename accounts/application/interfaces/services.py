"""Service interfaces (ports) for outbound side effects and token handling."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


class IEmailSender(Protocol):
    """Outbound email delivery. Raises EmailDeliveryException when delivery fails."""

    async def send(self, to_email: str, subject: str, body: str) -> None:
        """Deliver a rendered message to a single recipient."""


class IEmailTemplateRenderer(Protocol):
    def render(self, template_key: str, **context: Any) -> tuple[str, str]:
        """Return (subject, body) for template_key."""


class IAuthSecurity(Protocol):
    """Session token signing and verification."""

    def create_access_token(
        self, subject: str, issued_at: datetime | None = None
    ) -> str: ...

    def decode_token(self, token: str) -> dict[str, Any]:
        """Return the verified payload; raise AuthenticationException otherwise."""
