"""Infrastructure exceptions raised by the document store.

These are raw failures. accounts.core.exception_handlers translates them
into the domain taxonomy before anything reaches a caller.
"""

from typing import Any


class StoreError(Exception):
    """Base exception for document store failures."""


class DuplicateKeyError(StoreError):
    """A write would give a unique field the value another document already has."""

    def __init__(self, key_value: dict[str, Any]) -> None:
        self.key_value = key_value
        super().__init__(f"Duplicate key: {key_value}")


class CastError(StoreError):
    """A filter value could not be converted to the field's stored type."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Cannot cast {value!r} for field {field!r}")


class DocumentValidationError(StoreError):
    """A document failed schema validation before write."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__(
            ", ".join(f"{field}: {message}" for field, message in errors.items())
        )


class DocumentExistsError(StoreError):
    """Insert targeted an id that is already taken."""
