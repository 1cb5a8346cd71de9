"""User repository: identity documents with soft delete and hashed passwords."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, ClassVar

from pydantic import ValidationError

from accounts.application.services.visibility import DELETED_FIELD, apply_visibility
from accounts.core.config import get_settings
from accounts.domain.user import (
    SECRET_FIELDS,
    UserCreate,
    UserPatch,
    validation_errors,
)
from accounts.infrastructure.exceptions import DocumentValidationError
from accounts.infrastructure.firestore.collections import COLLECTION_USERS
from accounts.infrastructure.persistence.filters import ID_FIELD
from accounts.infrastructure.persistence.repositories.base import (
    BaseRepository,
    parse_bool,
)
from accounts.infrastructure.security.password import (
    get_password_hash,
    verify_password,
)
from accounts.shared.utils.datetime import parse_datetime, utc_now

logger = logging.getLogger(__name__)

_dummy_hash_cache: str | None = None


async def get_dummy_hash() -> str:
    """Return a valid bcrypt hash for dummy comparison (timing-attack mitigation)."""
    global _dummy_hash_cache
    if _dummy_hash_cache is None:
        _dummy_hash_cache = await asyncio.to_thread(
            get_password_hash, "not-a-real-password"
        )
    return _dummy_hash_cache


class UserRepository(BaseRepository):
    """Identity documents.

    Stored fields: first_name, last_name, email, tel, role, password (bcrypt
    hash), password_changed_at, password_reset_token (sha256 hex),
    password_reset_expires, deleted, plus the base id / timestamps / __v.
    """

    collection_name: ClassVar[str] = COLLECTION_USERS
    unique_fields: ClassVar[tuple[str, ...]] = ("email", "tel")
    field_casts: ClassVar[Mapping[str, Any]] = {
        **BaseRepository.field_casts,
        DELETED_FIELD: parse_bool,
        "password_changed_at": parse_datetime,
        "password_reset_expires": parse_datetime,
    }
    secret_fields: ClassVar[tuple[str, ...]] = SECRET_FIELDS
    hidden_fields: ClassVar[tuple[str, ...]] = (DELETED_FIELD,)

    async def before_create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            user = UserCreate.model_validate(dict(data))
        except ValidationError as e:
            raise DocumentValidationError(validation_errors(e)) from e
        document = user.model_dump(mode="json", exclude={"password_confirm"})
        document["password"] = await asyncio.to_thread(
            get_password_hash, user.password
        )
        # first save: no password_changed_at, or the registration token would be stale
        document.update(
            {
                DELETED_FIELD: False,
                "password_changed_at": None,
                "password_reset_token": None,
                "password_reset_expires": None,
            }
        )
        return document

    async def before_update(
        self, changes: Mapping[str, Any], *, validate: bool = True
    ) -> dict[str, Any]:
        patch = dict(changes)
        if validate:
            try:
                user = UserPatch.model_validate(patch)
            except ValidationError as e:
                raise DocumentValidationError(validation_errors(e)) from e
            patch = user.model_dump(
                mode="json", exclude={"password_confirm"}, exclude_unset=True
            )
        patch.pop("password_confirm", None)
        patch.pop("passwordConfirm", None)
        password = patch.get("password")
        if password is not None:
            patch["password"] = await asyncio.to_thread(get_password_hash, password)
            skew = timedelta(seconds=get_settings().password_change_skew_seconds)
            patch["password_changed_at"] = utc_now() - skew
        return patch

    def on_read(
        self, filter_: dict[str, Any], *, include_deleted: bool = False
    ) -> dict[str, Any]:
        return apply_visibility(filter_, include_deleted=include_deleted)

    async def find_by_email(
        self, email: str, *, include_secrets: bool = False
    ) -> dict[str, Any] | None:
        return await self.find_one(
            {"email": email.strip().lower()}, include_secrets=include_secrets
        )

    async def find_by_reset_token(
        self, token_hash: str, now: datetime
    ) -> dict[str, Any] | None:
        """Return the user holding token_hash if it has not expired."""
        return await self.find_one(
            {"password_reset_token": token_hash, "password_reset_expires": {"$gt": now}},
            include_secrets=True,
        )

    async def soft_delete(self, user_id: str) -> dict[str, Any] | None:
        """Flag a live user as deleted; None if no live user has that id."""
        user = await self.update(
            {ID_FIELD: user_id}, {DELETED_FIELD: True}, validate=False
        )
        if user is not None:
            logger.info("User %s soft-deleted", user_id)
        return user

    async def restore(self, user_id: str) -> dict[str, Any] | None:
        """Flag a deleted user as live again; None if no deleted user has that id."""
        user = await self.update(
            {ID_FIELD: user_id, DELETED_FIELD: True},
            {DELETED_FIELD: False},
            validate=False,
        )
        if user is not None:
            logger.info("User %s restored", user_id)
        return user

    async def set_reset_token(
        self, user_id: str, token_hash: str | None, expires_at: datetime | None
    ) -> dict[str, Any] | None:
        """Set or clear (both None) the reset-token hash and expiry together."""
        return await self.update(
            {ID_FIELD: user_id},
            {"password_reset_token": token_hash, "password_reset_expires": expires_at},
            validate=False,
        )

    async def authenticate(self, email: str, password: str) -> dict[str, Any] | None:
        """Verify email/password; return the public user or None."""
        user = await self.find_by_email(email, include_secrets=True)
        if user is None:
            dummy_hash = await get_dummy_hash()
            await asyncio.to_thread(verify_password, password, dummy_hash)
            return None
        stored_hash = user.get("password") or ""
        if not await asyncio.to_thread(verify_password, password, stored_hash):
            return None
        return self.present(user)

    async def check_password(self, user_id: str, password: str) -> bool:
        """Return True if password matches the stored hash of user_id."""
        user = await self.find_one({ID_FIELD: user_id}, include_secrets=True)
        if user is None:
            return False
        return await asyncio.to_thread(
            verify_password, password, user.get("password") or ""
        )
