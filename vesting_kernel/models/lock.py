"""
Module: vesting_kernel.models.lock
Responsibility: ORM persistence for the one lock record kept per account.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain value objects.  MUST NOT import from services/.

Invariants enforced:
    - One row per account (uq_vesting_lock_account).
    - locked_amount > 0 (ck_vesting_lock_amount_positive): a zero-amount
      lock is never created.  The service rejects zero before writing;
      the constraint backs it up on PostgreSQL, where the column is numeric.
    - Rows are never deleted; a new deposit overwrites the row in place.

Failure modes:
    - IntegrityError on a second row for the same account_id, or on a
      non-positive amount.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from vesting_kernel.db.base import Base
from vesting_kernel.db.types import AmountType
from vesting_kernel.domain.values import Lock


class VestingLock(Base):
    """
    Stored lock for one account.

    Guarantees:
        - to_value() returns the immutable domain Lock for this row.
        - apply() copies a domain Lock onto the row (deposit overwrite or
          claim checkpoint).
    """

    __tablename__ = "vesting_locks"

    __table_args__ = (
        UniqueConstraint("account_id", name="uq_vesting_lock_account"),
        CheckConstraint("locked_amount > 0", name="ck_vesting_lock_amount_positive"),
    )

    # Caller identity from the hosting environment
    account_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
    )

    locked_amount: Mapped[int] = mapped_column(
        AmountType(),
        nullable=False,
    )

    # Deposit time (clock seconds)
    locked_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # None until the first successful claim against this lock
    last_claimed_at: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def to_value(self) -> Lock:
        return Lock(
            locked_amount=self.locked_amount,
            locked_at=self.locked_at,
            last_claimed_at=self.last_claimed_at,
        )

    def apply(self, lock: Lock) -> None:
        self.locked_amount = lock.locked_amount
        self.locked_at = lock.locked_at
        self.last_claimed_at = lock.last_claimed_at

    def __repr__(self) -> str:
        return (
            f"<VestingLock {self.account_id}: {self.locked_amount} "
            f"at {self.locked_at}, claimed {self.last_claimed_at}>"
        )
