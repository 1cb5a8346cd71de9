"""User API: thin routes delegating to UserService.

Static paths (/me, /trash) are declared before /{user_id} so they are not
captured as ids.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from accounts.api.v1.dependencies import (
    get_current_identity,
    get_user_service,
    require_roles,
)
from accounts.application.dtos.identity import IdentityContext
from accounts.application.dtos.resource import Outcome, ResourceRequest
from accounts.application.services.query_shaper import parse_query_params
from accounts.application.services.user_service import UserService
from accounts.core.config import get_settings
from accounts.core.limiter import limit_writes
from accounts.domain.enums import Role

router = APIRouter()

Service = Annotated[UserService, Depends(get_user_service)]
Authenticated = Annotated[IdentityContext, Depends(get_current_identity)]
AnyAdmin = Annotated[IdentityContext, Depends(require_roles(Role.SUPER_ADMIN, Role.ADMIN))]
SuperAdmin = Annotated[IdentityContext, Depends(require_roles(Role.SUPER_ADMIN))]
JsonBody = Annotated[dict[str, Any], Body()]


def _respond(outcome: Outcome) -> Response:
    if outcome.body is None:
        return Response(status_code=outcome.status_code)
    return JSONResponse(
        status_code=outcome.status_code, content=jsonable_encoder(outcome.body)
    )


def _query(request: Request) -> dict[str, Any]:
    return parse_query_params(request.query_params.multi_items())


@router.get("/me")
async def get_me(request: Request, identity: Authenticated, service: Service):
    """Return the caller's own record."""
    outcome = await service.get_user(
        ResourceRequest(identity=identity, resource_id=identity.user_id, query=_query(request))
    )
    return _respond(outcome)


@router.put("/me")
@limit_writes
async def update_me(
    request: Request, body: JsonBody, identity: Authenticated, service: Service
):
    """Update the caller's own record. Password, role and machines are refused."""
    outcome = await service.update_me(
        ResourceRequest(identity=identity, resource_id=identity.user_id, body=body)
    )
    return _respond(outcome)


@router.get("/trash")
async def list_trash(request: Request, identity: AnyAdmin, service: Service):
    """List soft-deleted users."""
    outcome = await service.list_trash(
        ResourceRequest(identity=identity, query=_query(request))
    )
    return _respond(outcome)


@router.get("")
async def list_users(
    request: Request,
    identity: AnyAdmin,
    service: Service,
    include_deleted: bool = False,
):
    """List users with filtering, sorting, field selection and pagination.

    include_deleted=true adds soft-deleted users to the results.
    """
    outcome = await service.list_users(
        ResourceRequest(
            identity=identity,
            query=_query(request),
            include_deleted=include_deleted,
        )
    )
    return _respond(outcome)


@router.post("")
@limit_writes
async def create_user(
    request: Request,
    body: JsonBody,
    identity: SuperAdmin,
    service: Service,
    url: str | None = None,
):
    """Create a user and send the welcome email."""
    outcome = await service.create_user(
        ResourceRequest(identity=identity, body=body),
        url or get_settings().default_site_url,
        request.headers.get("host"),
    )
    return _respond(outcome)


@router.get("/{user_id}")
async def get_user(
    request: Request,
    user_id: str,
    identity: AnyAdmin,
    service: Service,
    include_deleted: bool = False,
):
    outcome = await service.get_user(
        ResourceRequest(
            identity=identity,
            resource_id=user_id,
            query=_query(request),
            include_deleted=include_deleted,
        )
    )
    return _respond(outcome)


@router.put("/{user_id}")
@limit_writes
async def replace_user(
    request: Request, user_id: str, body: JsonBody, identity: SuperAdmin, service: Service
):
    outcome = await service.update_user(
        ResourceRequest(identity=identity, resource_id=user_id, body=body)
    )
    return _respond(outcome)


@router.patch("/{user_id}")
@limit_writes
async def update_user(
    request: Request, user_id: str, body: JsonBody, identity: SuperAdmin, service: Service
):
    """Patch the fields present in the body. Passwords go through /settings/update-password."""
    outcome = await service.update_user(
        ResourceRequest(identity=identity, resource_id=user_id, body=body)
    )
    return _respond(outcome)


@router.delete("/{user_id}", status_code=204)
@limit_writes
async def delete_user(
    request: Request, user_id: str, identity: SuperAdmin, service: Service
):
    """Soft delete: the user moves to the trash."""
    outcome = await service.soft_delete_user(
        ResourceRequest(identity=identity, resource_id=user_id)
    )
    return _respond(outcome)


@router.post("/{user_id}/restore")
@limit_writes
async def restore_user(
    request: Request, user_id: str, identity: SuperAdmin, service: Service
):
    """Bring a soft-deleted user back."""
    outcome = await service.restore_user(
        ResourceRequest(identity=identity, resource_id=user_id)
    )
    return _respond(outcome)
