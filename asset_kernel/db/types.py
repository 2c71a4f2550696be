"""
Module: asset_kernel.db.types
Responsibility: Portable column types shared by every model: UUID keys
    stored as text and timestamps that always come back as aware UTC.
Architecture position: Kernel > DB.  Imported by db/base.py and models/.
    MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - A UUID column accepts a UUID or its string form and always loads as
      a ``uuid.UUID``; transfer and batch ids arrive as strings from callers.
    - Timestamps are timezone-aware UTC on the way out of the database,
      whatever the backend.  SQLite has no timezone storage, so values are
      normalized to naive UTC on write and re-attached to UTC on read.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character text form (PostgreSQL and SQLite alike)."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, UUID) else UUID(str(value)))

    def process_result_value(self, value, dialect):
        return UUID(value) if value is not None else None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that always round-trips as UTC.

    Naive values handed in by callers are taken to be UTC already.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def utcnow() -> datetime:
    """Column default for rows created outside a clock-aware service."""
    return datetime.now(UTC)
