"""Database layer: engine, declarative bases, column types and ORM guards."""

from asset_kernel.db.base import Base, TrackedBase
from asset_kernel.db.engine import (
    build_engine,
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from asset_kernel.db.types import UTCDateTime, UUIDString

__all__ = [
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "build_engine",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
