"""Domain enumerations for the accounts service."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class Role(_ValuesMixin, str, Enum):
    """Account role. SUPER_ADMIN is the elevated role; ADMIN is the regular one."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
