"""
Module: vesting_kernel.db.types
Responsibility: Column type and validation helper for token amounts, so
    every model and service uses the same definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/
    and services/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Amounts are unsigned integers up to 2**128 - 1, stored
      exactly and always returned as ``int``.  No floats anywhere.

Failure modes:
    - ValueError on a fractional value read back from an amount column.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

# Largest balance the ledger accepts (unsigned 128-bit)
MAX_AMOUNT = 2**128 - 1

# Numeric(39, 0) holds every unsigned 128-bit value exactly
AMOUNT_PRECISION = 39


class AmountType(TypeDecorator):
    """
    Unsigned integer amount, exact at any supported size.

    PostgreSQL stores it as Numeric(39, 0).  Other dialects (SQLite) would
    round large Numeric values through float, so they store the decimal
    digits as String(40) instead.

    Guarantees:
        - process_bind_param: int -> Decimal or str (exact) on INSERT/UPDATE.
        - process_result_value: Decimal or str -> int on SELECT.
    """

    impl = Numeric(AMOUNT_PRECISION, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(AMOUNT_PRECISION, 0))
        return dialect.type_descriptor(String(AMOUNT_PRECISION + 1))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return Decimal(int(value))
        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Decimal) and value != value.to_integral_value():
            raise ValueError(f"Fractional amount in integer column: {value}")
        return int(value)


def is_valid_amount(value: object) -> bool:
    """
    True iff ``value`` is an int (not bool) within [0, MAX_AMOUNT].

    Postconditions: Pure check, no exceptions.
    """
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_AMOUNT
    )
