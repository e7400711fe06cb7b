"""Database layer - engine, base classes, and value conversion helpers."""

from trade_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from trade_kernel.db.engine import create_tables, get_session, init_engine_from_url
from trade_kernel.db.types import decimal_from_input, format_decimal, uuid_from_input

__all__ = [
    "init_engine_from_url",
    "get_session",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "decimal_from_input",
    "format_decimal",
    "uuid_from_input",
]
