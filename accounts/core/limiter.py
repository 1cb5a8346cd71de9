"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. create_app() enables it only in production.
Limit strings are read from settings per request, not at import.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from accounts.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def _login_limit() -> str:
    return get_settings().login_rate_limit


def _write_limit() -> str:
    return get_settings().write_rate_limit


limit_auth = limiter.limit(_login_limit)
limit_writes = limiter.limit(_write_limit)
