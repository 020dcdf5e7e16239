"""Services for the vesting kernel (write side and persistent store)."""

from vesting_kernel.services.lock_ledger_service import LockLedgerService
from vesting_kernel.services.lock_store import SqlLockStore

__all__ = [
    "LockLedgerService",
    "SqlLockStore",
]
