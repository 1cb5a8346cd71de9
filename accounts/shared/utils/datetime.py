"""UTC datetime helpers.

All datetimes stored in documents and compared against token timestamps
are timezone-aware UTC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return dt as UTC-aware; naive values are assumed to already be UTC.

    Use at store boundaries, since some backends hand back naive datetimes.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string (a trailing Z is accepted) into a UTC datetime.

    Raises:
        ValueError: If value is not ISO-8601.
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return ensure_utc(parsed)  # type: ignore[return-value]
