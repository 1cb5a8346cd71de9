"""User identity rules: write-time validation models and credential helpers.

The persisted user is a plain document (dict). These models validate what
clients may write; accounts.infrastructure.persistence.repositories.user_repo
runs them at its before-create / before-update points.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from datetime import datetime, timedelta
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from accounts.domain.enums import Role

PASSWORD_MIN_LENGTH = 8
TEL_PATTERN = re.compile(
    r"^\+?(\d{1,3})?[- .(]*(\d{3})[- .)]*(\d{3})[- .]*(\d{4})$"
)

# Never leave the store boundary unless explicitly requested
SECRET_FIELDS: tuple[str, ...] = (
    "password",
    "password_reset_token",
    "password_reset_expires",
)

_email_adapter = TypeAdapter(EmailStr)

_LABELS: dict[str, str] = {
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
    "password": "Password",
    "password_confirm": "Password confirmation",
    "role": "Role",
    "tel": "Telephone",
}


class _UserRules(BaseModel):
    """Normalization and field rules shared by create and patch models."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("first_name", "last_name", mode="before", check_fields=False)
    @classmethod
    def _trim_lower(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def _normalize_email(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("tel", mode="before", check_fields=False)
    @classmethod
    def _check_tel(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Please provide a valid telephone number")
        value = value.strip()
        if not TEL_PATTERN.match(value):
            raise ValueError("Please provide a valid telephone number")
        return value

    @field_validator("role", mode="before", check_fields=False)
    @classmethod
    def _check_role(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
        if isinstance(value, str) and value not in Role.values():
            raise ValueError(f"Role is either: {', '.join(Role.values())}")
        return value

    @field_validator("password", mode="after", check_fields=False)
    @classmethod
    def _check_password_length(cls, value: str | None) -> str | None:
        if value is not None and len(value) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        return value

    @model_validator(mode="after")
    def _passwords_match(self):
        password = getattr(self, "password", None)
        if password is None:
            return self
        confirm = getattr(self, "password_confirm", None)
        if confirm is None:
            raise ValueError("password_confirm: Password confirmation is required")
        if confirm != password:
            raise ValueError("password_confirm: Passwords are not the same")
        return self


class UserCreate(_UserRules):
    """Fields a new identity must carry. password_confirm is never persisted."""

    first_name: str
    last_name: str
    email: EmailStr
    password: str
    password_confirm: str = Field(
        validation_alias=AliasChoices("passwordConfirm", "password_confirm"),
    )
    role: Role
    tel: str | None = None


class UserPatch(_UserRules):
    """Partial update of an identity; only fields present in the input are applied."""

    first_name: str = None  # type: ignore[assignment]
    last_name: str = None  # type: ignore[assignment]
    email: EmailStr = None  # type: ignore[assignment]
    password: str = None  # type: ignore[assignment]
    password_confirm: str = Field(
        default=None,
        validation_alias=AliasChoices("passwordConfirm", "password_confirm"),
    )
    role: Role = None  # type: ignore[assignment]
    tel: str | None = None


def validation_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into a field → message map."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else ""
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        if not field and ": " in msg:
            # model-level rules prefix their message with the field name
            field, msg = msg.split(": ", 1)
        if field == "passwordConfirm":
            field = "password_confirm"
        label = _LABELS.get(field, field)
        if err.get("type") == "missing" or (
            "input" in err and err["input"] is None and field != "tel"
        ):
            msg = f"{label} is required"
        elif field == "email":
            msg = "Please provide a valid email"
        errors.setdefault(field or "__root__", msg)
    return errors


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def public_view(user: dict[str, Any]) -> dict[str, Any]:
    """Return user without secret fields."""
    return {k: v for k, v in user.items() if k not in SECRET_FIELDS}


def password_changed_after(user: dict[str, Any], issued_at: int) -> bool:
    """Return True if the user's password changed after a token issued at issued_at (epoch seconds)."""
    changed_at: datetime | None = user.get("password_changed_at")
    if changed_at is None:
        return False
    return issued_at < int(changed_at.timestamp())


def hash_reset_token(token: str) -> str:
    """One-way hash under which a reset token is stored and looked up."""
    return hashlib.sha256(token.encode()).hexdigest()


def new_reset_token(now: datetime, ttl: timedelta) -> tuple[str, str, datetime]:
    """Return (plaintext, hash, expires_at) for a fresh password reset token."""
    plaintext = secrets.token_hex(32)
    return plaintext, hash_reset_token(plaintext), now + ttl
