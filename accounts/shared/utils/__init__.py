"""Shared utilities (datetime, id generation)."""

from accounts.shared.utils.datetime import ensure_utc, parse_datetime, utc_now
from accounts.shared.utils.generators import generate_cuid

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "parse_datetime",
    "utc_now",
]
