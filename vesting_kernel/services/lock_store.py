"""
SqlLockStore -- LockStore backed by the ``vesting_locks`` table.

Responsibility:
    Reads and writes the per-account VestingLock row on behalf of
    LockLedgerService and maps it to the immutable domain Lock.

Architecture position:
    Kernel > Services -- imperative shell.  Implements the domain LockStore
    port over a caller-owned SQLAlchemy session.

Invariants enforced:
    - Row-level lock: reads use ``SELECT ... FOR UPDATE`` so that a claim or
      deposit holds the account's row until the caller's transaction ends.
    - Overwrite in place: ``set`` updates the existing row; there is one row
      per account and it is never deleted.
    - ``atomic()`` is a SAVEPOINT: if the body raises (a failed payout), the
      row returns to its previous state while the outer transaction stays
      usable.

Failure modes:
    - IntegrityError if two sessions insert the first lock for the same
      account concurrently (uq_vesting_lock_account); the caller's
      transaction is rolled back and may be retried.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import func, select

from vesting_kernel.domain.store import LockStore
from vesting_kernel.domain.values import Lock
from vesting_kernel.logging_config import get_logger
from vesting_kernel.models.lock import VestingLock
from vesting_kernel.services.base import BaseService

logger = get_logger("services.lock_store")


class SqlLockStore(BaseService[VestingLock], LockStore):
    """
    LockStore over a SQLAlchemy session.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def _load_row(self, account_id: str) -> VestingLock | None:
        return self.session.execute(
            select(VestingLock)
            .where(VestingLock.account_id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get(self, account_id: str) -> Lock | None:
        row = self._load_row(account_id)
        return row.to_value() if row is not None else None

    def set(self, account_id: str, lock: Lock) -> None:
        row = self._load_row(account_id)
        if row is None:
            row = VestingLock(account_id=account_id)
            row.apply(lock)
            self.session.add(row)
        else:
            row.apply(lock)
        self.session.flush()
        logger.debug(
            "lock_row_written",
            extra={
                "account_id": account_id,
                "locked_amount": lock.locked_amount,
                "locked_at": lock.locked_at,
                "last_claimed_at": lock.last_claimed_at,
            },
        )

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self.session.begin_nested():
            yield

    def count(self) -> int:
        """Number of accounts that have ever deposited."""
        return self.session.execute(
            select(func.count()).select_from(VestingLock)
        ).scalar_one()
