"""Time helpers shared by models and services."""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime, matching stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Return the current UTC calendar date."""
    return utcnow().date()
