"""Domain exceptions for the accounts service.

Every user-facing failure is one of these. The presentation layer maps
error_code to an HTTP status in accounts.core.exception_handlers.
"""

from typing import Any


class AccountsException(Exception):
    """Base exception for all accounts service errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field errors, resource).
        is_operational: True for anticipated failures whose message is safe
            to show to the caller.
    """

    is_operational = True

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    @property
    def errors(self) -> dict[str, Any] | None:
        """Field-level error map, when the failure has one."""
        return self.details.get("errors")

    def to_dict(self) -> dict[str, Any]:
        """Return message and optional field errors (no status, no stack)."""
        out: dict[str, Any] = {"message": self.message}
        if self.errors:
            out["errors"] = self.errors
        return out


class ValidationException(AccountsException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with message and an optional field or field → message map.

        Args:
            message: Description of the validation failure.
            field: Single field that failed; becomes {field: message}.
            errors: Explicit field → message map (wins over field).
        """
        if errors is None and field:
            errors = {field: message}
        details = {"errors": errors} if errors else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ConflictException(AccountsException):
    """Raised when a write collides with a unique field of another document."""

    def __init__(self, key_value: dict[str, Any]) -> None:
        errors = {
            key: f"Duplicate value for field '{key}' with value '{value}'"
            for key, value in key_value.items()
        }
        message = "Duplicate field value error: " + ", ".join(
            f"{field}: {msg}" for field, msg in errors.items()
        )
        super().__init__(message, "DUPLICATE_FIELD", {"errors": errors})


class AuthenticationException(AccountsException):
    """Raised when identity cannot be established (missing/invalid/expired token, bad credentials)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(AccountsException):
    """Raised when an identified caller may not perform the operation."""

    def __init__(
        self, message: str = "You do not have permission to perform this action"
    ) -> None:
        super().__init__(message, "PERMISSION_DENIED")


class ResourceNotFoundException(AccountsException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, message: str | None = None) -> None:
        """Initialize with the resource type and an optional custom message.

        Args:
            resource_type: Type of resource (e.g. 'user').
            message: Overrides the default "No <resource> found with that ID".
        """
        super().__init__(
            message or f"No {resource_type} found with that ID",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type},
        )


class EmailDeliveryException(AccountsException):
    """Raised when an outbound email could not be delivered."""

    def __init__(
        self,
        message: str = "There was an error sending the email. Please try again later!",
    ) -> None:
        super().__init__(message, "EMAIL_DELIVERY_ERROR")


class InternalException(AccountsException):
    """Unexpected fault. Its message is hidden from callers in production."""

    is_operational = False

    def __init__(self, message: str = "Something went very wrong!") -> None:
        super().__init__(message, "INTERNAL_ERROR")
