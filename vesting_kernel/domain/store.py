"""
LockStore -- persistent key-value boundary for lock records.

Responsibility:
    Declares the narrow interface the ledger uses to read and write the one
    Lock kept per account, plus an all-or-nothing scope used by claim.

Architecture position:
    Kernel > Domain -- port definition.  The SQLAlchemy implementation lives
    in ``vesting_kernel.services.lock_store``; the in-memory one below is
    used by tests and demos.

Invariants enforced:
    - Overwrite is the only removal path: there is no delete.
    - Writes made inside ``atomic()`` are discarded if the block raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from vesting_kernel.domain.values import Lock


class LockStore(ABC):
    """Abstract per-account lock storage."""

    @abstractmethod
    def get(self, account_id: str) -> Lock | None:
        """Return the stored lock for ``account_id``, or None."""
        ...

    @abstractmethod
    def set(self, account_id: str, lock: Lock) -> None:
        """Store ``lock`` for ``account_id``, replacing any previous lock."""
        ...

    @abstractmethod
    def atomic(self) -> Iterator[None]:
        """
        Context manager scoping an all-or-nothing group of writes.

        If the body raises, every ``set`` performed inside it is undone and
        the exception propagates.
        """
        ...


class InMemoryLockStore(LockStore):
    """
    Dict-backed LockStore.

    Locks are immutable values, so a shallow copy of the mapping is a
    complete snapshot for rollback.
    """

    def __init__(self, locks: dict[str, Lock] | None = None):
        self._locks: dict[str, Lock] = dict(locks or {})

    def get(self, account_id: str) -> Lock | None:
        return self._locks.get(account_id)

    def set(self, account_id: str, lock: Lock) -> None:
        self._locks[account_id] = lock

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = dict(self._locks)
        try:
            yield
        except BaseException:
            self._locks = snapshot
            raise

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._locks
