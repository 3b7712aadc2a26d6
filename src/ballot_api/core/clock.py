"""Authoritative server clock.

Every expiry and phase decision reads time from here so that a timestamp
supplied by a client can never influence it.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current server time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Coerce a datetime to aware UTC.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns;
    those are stored as UTC, so they are tagged rather than converted.

    Args:
        value: A naive (assumed UTC) or aware datetime.

    Returns:
        The equivalent aware UTC datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
