"""Create the first super_admin user when none exists.

Usage:
    python -m scripts.seed_super_admin [first_name] [last_name]
Reads SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD from the environment (or .env).
All imports use accounts.*.
"""

import asyncio
import sys

from accounts.application.dtos.query import QuerySpec
from accounts.core.config import get_settings
from accounts.core.lifespan import create_document_store
from accounts.domain.enums import Role
from accounts.infrastructure.persistence.repositories import UserRepository


async def main() -> None:
    """Seed the super admin; no-op when one is already stored (deleted included)."""
    settings = get_settings()
    if not settings.super_admin_email or not settings.super_admin_password:
        print(
            "Set SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD before seeding",
            file=sys.stderr,
        )
        sys.exit(1)
    first_name = sys.argv[1] if len(sys.argv) > 1 else "super"
    last_name = sys.argv[2] if len(sys.argv) > 2 else "admin"

    store = create_document_store(settings)
    try:
        user_repo = UserRepository(store)
        existing = await user_repo.find(
            QuerySpec(
                filter={"role": Role.SUPER_ADMIN.value}, limit=1, include_deleted=True
            )
        )
        if existing:
            print(f"A super admin already exists: {existing[0]['id']}")
            return
        password = settings.super_admin_password.get_secret_value()
        user = await user_repo.create(
            {
                "first_name": first_name,
                "last_name": last_name,
                "email": settings.super_admin_email,
                "password": password,
                "password_confirm": password,
                "role": Role.SUPER_ADMIN.value,
            }
        )
        print(f"Created super admin: {user['id']} ({user['email']})")
    finally:
        await store.aclose()


if __name__ == "__main__":
    asyncio.run(main())
