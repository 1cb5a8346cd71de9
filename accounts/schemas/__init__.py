"""Pydantic request/response schemas for the API."""

from accounts.schemas.auth import (
    ForgetPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
)
from accounts.schemas.health import HealthResponse

__all__ = [
    "ForgetPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "ResetPasswordRequest",
    "UpdatePasswordRequest",
]
