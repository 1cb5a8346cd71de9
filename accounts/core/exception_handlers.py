"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Every failure raised while
handling a request ends here and leaves as the error envelope:

    {"status": "fail" | "error", "message": str, "errors"?: {...}, "stack"?: str}

status is "fail" for 4xx and "error" for 5xx; stack is only present in
development. Raw store failures are first translated into domain exceptions.
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from accounts.core.config import get_settings
from accounts.domain.exceptions import (
    AccountsException,
    ConflictException,
    InternalException,
    ResourceNotFoundException,
    ValidationException,
)
from accounts.infrastructure.exceptions import (
    CastError,
    DocumentValidationError,
    DuplicateKeyError,
    StoreError,
)

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "DUPLICATE_FIELD": 400,
    "AUTHENTICATION_ERROR": 401,
    "PERMISSION_DENIED": 403,
    "RESOURCE_NOT_FOUND": 404,
    "EMAIL_DELIVERY_ERROR": 500,
    "INTERNAL_ERROR": 500,
}


def translate_store_error(exc: StoreError) -> AccountsException:
    """Map a raw store failure onto the domain taxonomy."""
    if isinstance(exc, DuplicateKeyError):
        return ConflictException(exc.key_value)
    if isinstance(exc, CastError):
        return ValidationException(
            f"Invalid type, please provide a valid {exc.field}", field=exc.field
        )
    if isinstance(exc, DocumentValidationError):
        message = "Invalid input data: " + ", ".join(
            f"{field}: {msg}" for field, msg in exc.errors.items()
        )
        return ValidationException(message, errors=exc.errors)
    return InternalException()


def _envelope(
    exc: AccountsException, status_code: int, cause: BaseException | None = None
) -> JSONResponse:
    settings = get_settings()
    if settings.is_production and not exc.is_operational:
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": InternalException().message},
        )
    content = {
        "status": "fail" if status_code < 500 else "error",
        **exc.to_dict(),
    }
    if settings.is_development:
        source = cause or exc
        content["stack"] = "".join(
            traceback.format_exception(type(source), source, source.__traceback__)
        )
    return JSONResponse(status_code=status_code, content=content)


def _accounts_exception_handler(
    request: Request, exc: AccountsException
) -> JSONResponse:
    """Return the envelope for AccountsException with the status of its error_code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return _envelope(exc, status)


def _store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    translated = translate_store_error(exc)
    if isinstance(translated, InternalException):
        logger.error("Unhandled store error: %s", exc, exc_info=exc)
    return _envelope(translated, _ERROR_CODE_STATUS[translated.error_code], exc)


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 400 with a field → message map."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "body", str(err.get("msg", "Invalid value")))
    message = "Invalid input data: " + ", ".join(f"{k}: {v}" for k, v in errors.items())
    return _envelope(ValidationException(message, errors=errors), 400)


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return the envelope for Starlette HTTP exceptions (unknown route, bad method, ...)."""
    if exc.status_code == 404:
        not_found = ResourceNotFoundException(
            "route", f"Can't find {request.method} {request.url.path} on this server!"
        )
        return _envelope(not_found, 404)
    status = exc.status_code
    return JSONResponse(
        status_code=status,
        content={"status": "fail" if status < 500 else "error", "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; detail only outside production."""
    logger.exception("Unhandled exception: %s", exc)
    return _envelope(InternalException(), 500, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: AccountsException (and
    subclasses), StoreError, RequestValidationError, StarletteHTTPException,
    generic Exception.
    """
    app.add_exception_handler(AccountsException, _accounts_exception_handler)
    app.add_exception_handler(StoreError, _store_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
