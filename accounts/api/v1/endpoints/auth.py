"""Auth API: login, password reset and password change.

Successful logins and password changes answer with a fresh token in the
body and in an http-only session cookie.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from accounts.api.v1.dependencies import get_credential_service, get_current_identity
from accounts.application.dtos.identity import IdentityContext, IssuedToken
from accounts.application.services.credential_service import CredentialService
from accounts.core.config import get_settings
from accounts.core.limiter import limit_auth, limit_writes
from accounts.schemas.auth import (
    ForgetPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
)

router = APIRouter()


def _is_secure(request: Request) -> bool:
    return (
        request.url.scheme == "https"
        or request.headers.get("x-forwarded-proto") == "https"
    )


def _send_token(
    request: Request, user: dict[str, Any], issued: IssuedToken, status_code: int = 200
) -> JSONResponse:
    """Return {status, token, data: {user}} and set the session cookie."""
    response = JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {"status": "success", "token": issued.token, "data": {"user": user}}
        ),
    )
    response.set_cookie(
        get_settings().cookie_name,
        issued.token,
        max_age=issued.cookie_max_age,
        httponly=True,
        secure=_is_secure(request),
    )
    return response


@router.post("/login")
@limit_auth
async def login(
    request: Request,
    body: LoginRequest,
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
):
    """Authenticate with email and password; return a session token."""
    user, issued = await credential_service.login(body.email, body.password)
    return _send_token(request, user, issued)


@router.post("/forget-password")
@limit_auth
async def forget_password(
    request: Request,
    body: ForgetPasswordRequest,
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
    url: str | None = None,
):
    """Email a password reset link. The link points at url (or the default site url)."""
    await credential_service.request_password_reset(
        body.email,
        url or get_settings().default_site_url,
        request.headers.get("host"),
    )
    return {"status": "success", "message": "Token sent to email!"}


@router.patch("/reset-password/{token}")
@limit_auth
async def reset_password(
    request: Request,
    token: str,
    body: ResetPasswordRequest,
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
):
    """Set a new password with a reset token and log the user in."""
    user, issued = await credential_service.consume_reset_token(
        token, body.password, body.password_confirm
    )
    return _send_token(request, user, issued)


@router.patch("/settings/update-password")
@limit_writes
async def update_password(
    request: Request,
    body: UpdatePasswordRequest,
    identity: Annotated[IdentityContext, Depends(get_current_identity)],
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
):
    """Change the caller's password. Tokens issued before the change stop working."""
    user, issued = await credential_service.change_password(
        identity, body.current_password, body.password, body.password_confirm
    )
    return _send_token(request, user, issued)
