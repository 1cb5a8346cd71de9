"""Auth API schemas.

Fields are optional at the schema level: presence and format are checked by
CredentialService so missing values get the same messages on every route.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Request body for login."""

    email: str | None = None
    password: str | None = None


class ForgetPasswordRequest(BaseModel):
    """Request body for POST /forget-password."""

    email: str | None = None


class _NewPassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: str | None = None
    password_confirm: str | None = Field(
        default=None,
        validation_alias=AliasChoices("passwordConfirm", "password_confirm"),
    )


class ResetPasswordRequest(_NewPassword):
    """Request body for PATCH /reset-password/{token}."""


class UpdatePasswordRequest(_NewPassword):
    """Request body for PATCH /settings/update-password."""

    current_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("currentPassword", "current_password"),
    )
