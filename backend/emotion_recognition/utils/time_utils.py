from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Timezone-aware current time. Every server-assigned timestamp comes from here."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalizes a datetime to aware UTC.
    SQLite hands back naive datetimes even for DateTime(timezone=True) columns;
    those were written as UTC, so they are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
