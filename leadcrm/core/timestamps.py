"""
Timestamp helpers. Stored timestamps are timezone-aware UTC.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_field(nullable: bool = False):
    """Model field for an aware UTC timestamp; required ones default to now."""
    if nullable:
        return Field(default=None, sa_type=DateTime(timezone=True))
    return Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
