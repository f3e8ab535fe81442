"""Database layer - engine, base classes, and append-only enforcement."""

from stock_kernel.db.base import UUID, Base, TimestampedBase, UTCDateTime, UUIDString
from stock_kernel.db.engine import create_tables, get_engine, get_session_factory

__all__ = [
    "get_engine",
    "get_session_factory",
    "create_tables",
    "Base",
    "TimestampedBase",
    "UTCDateTime",
    "UUIDString",
    "UUID",
]
