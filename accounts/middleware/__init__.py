"""HTTP middleware. Applied in accounts.main; first added = outermost."""

from accounts.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
