"""Time helpers - naive UTC timestamps as stored in DuckDB TIMESTAMP columns."""

from datetime import datetime, timezone

EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
