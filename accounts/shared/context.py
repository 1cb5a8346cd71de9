"""Request-scoped correlation data using contextvars.

Only the request id lives here, for log records. The authenticated identity
is never ambient: it is passed explicitly as an IdentityContext.
"""

from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    """Bind the request id to the current task."""
    _request_id.set(request_id)


def get_request_id() -> str | None:
    """Return the request id bound to the current task, if any."""
    return _request_id.get()
