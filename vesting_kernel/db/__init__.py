"""Database layer - engine, base classes and column types."""

from vesting_kernel.db.base import Base, UUIDString
from vesting_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    session_scope,
)
from vesting_kernel.db.types import MAX_AMOUNT, AmountType, is_valid_amount

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "UUIDString",
    "AmountType",
    "MAX_AMOUNT",
    "is_valid_amount",
]
