"""User application service: the user resource, self-service guards, creation email."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from accounts.application.dtos.resource import Outcome, ResourceRequest
from accounts.application.interfaces.repositories import IUserRepository
from accounts.application.services.notifications import AccountMailer
from accounts.application.services.resource_access import (
    ResourceDescriptor,
    create_one,
    get_one,
    list_all,
    restore_one,
    soft_delete_one,
    update_one,
)
from accounts.application.services.visibility import DELETED_FIELD
from accounts.domain.exceptions import AuthorizationException

PASSWORD_ROUTE_MESSAGE = (
    "This route is not for password updates. Please use /settings/update-password."
)
ROLE_UPDATE_MESSAGE = "You can't update your role. Please ask the super admin."
MACHINES_UPDATE_MESSAGE = "You can't update your machines. Please ask the super admin."

_PASSWORD_KEYS = ("password", "passwordConfirm", "password_confirm")


def reject_password_fields(body: Mapping[str, Any]) -> None:
    """Raise AuthorizationException if body tries to set a password."""
    if any(body.get(key) for key in _PASSWORD_KEYS):
        raise AuthorizationException(PASSWORD_ROUTE_MESSAGE)


def reject_self_service_fields(body: Mapping[str, Any]) -> None:
    """Guards of PUT /me: no password, role or machines changes."""
    reject_password_fields(body)
    if body.get("role"):
        raise AuthorizationException(ROLE_UPDATE_MESSAGE)
    if body.get("machines"):
        raise AuthorizationException(MACHINES_UPDATE_MESSAGE)


class UserService:
    """CRUD over users through the generic resource handlers."""

    def __init__(self, user_repo: IUserRepository, mailer: AccountMailer | None = None) -> None:
        self._user_repo = user_repo
        self._mailer = mailer
        self.resource = ResourceDescriptor("user", user_repo)
        self._list = list_all(self.resource)
        self._get = get_one(self.resource)
        self._create = create_one(self.resource)
        self._update = update_one(self.resource)
        self._soft_delete = soft_delete_one(self.resource)
        self._restore = restore_one(self.resource)

    async def list_users(self, request: ResourceRequest) -> Outcome:
        return await self._list(request)

    async def list_trash(self, request: ResourceRequest) -> Outcome:
        """List soft-deleted users only."""
        trash = ResourceRequest(
            identity=request.identity,
            query=request.query,
            base_filter={**request.base_filter, DELETED_FIELD: True},
        )
        return await self._list(trash)

    async def get_user(self, request: ResourceRequest) -> Outcome:
        return await self._get(request)

    async def create_user(
        self, request: ResourceRequest, site_url: str, host: str | None = None
    ) -> Outcome:
        """Create a user and send the welcome email.

        A failed email surfaces as EmailDeliveryException; the user stays created.
        """
        outcome = await self._create(request)
        if self._mailer is not None and outcome.body is not None:
            user = outcome.body["data"][self.resource.key]
            await self._mailer.send_welcome(user, site_url, host)
        return outcome

    async def update_user(self, request: ResourceRequest) -> Outcome:
        reject_password_fields(request.body or {})
        return await self._update(request)

    async def update_me(self, request: ResourceRequest) -> Outcome:
        reject_self_service_fields(request.body or {})
        return await self._update(request)

    async def soft_delete_user(self, request: ResourceRequest) -> Outcome:
        return await self._soft_delete(request)

    async def restore_user(self, request: ResourceRequest) -> Outcome:
        return await self._restore(request)
