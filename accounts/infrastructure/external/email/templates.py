"""Account email templates: template key → subject/body (Jinja)."""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined, Template

# key → (subject_template, body_template)
# Context: user (public user document), url, app_name, support_email, host, expires_minutes
_DEFAULT_TEMPLATES: dict[str, tuple[str, str]] = {
    "welcome": (
        "Welcome to {{ app_name }}!",
        "Hi {{ user.get('first_name') or 'there' }},\n\n"
        "An account has been created for you on {{ app_name }} with the email "
        "{{ user.get('email') }}.\n"
        "Sign in at {{ url }}\n\n"
        "Questions? Write to {{ support_email }}.\n",
    ),
    "password_reset": (
        "Your password reset token (valid for only {{ expires_minutes }} minutes)",
        "Hi {{ user.get('first_name') or 'there' }},\n\n"
        "Someone (hopefully you) asked to reset the password of your "
        "{{ app_name }} account.\n"
        "Set a new password here: {{ url }}\n\n"
        "The link expires in {{ expires_minutes }} minutes. If you did not ask "
        "for this, ignore this email; your password stays the same.\n"
        "{% if host %}Requested via {{ host }}.\n{% endif %}"
        "Questions? Write to {{ support_email }}.\n",
    ),
}


class EmailTemplateRenderer:
    """Renders subject and body of an account email from a template key."""

    def __init__(
        self,
        templates: dict[str, tuple[str, str]] | None = None,
    ) -> None:
        """Initialize with optional template dict; falls back to _DEFAULT_TEMPLATES."""
        self._templates = templates or _DEFAULT_TEMPLATES
        self._env = Environment(autoescape=False, undefined=StrictUndefined)
        self._compiled: dict[str, tuple[Template, Template]] = {
            key: (self._env.from_string(sub), self._env.from_string(body))
            for key, (sub, body) in self._templates.items()
        }

    def render(self, template_key: str, **context: Any) -> tuple[str, str]:
        """Render subject and body for the template key. Raises KeyError if key unknown."""
        if template_key not in self._compiled:
            raise KeyError(f"Unknown email template: {template_key}")
        subject_tpl, body_tpl = self._compiled[template_key]
        return subject_tpl.render(**context), body_tpl.render(**context)
