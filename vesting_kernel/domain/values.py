"""
Value objects for the vesting ledger.

Lock is the per-account record the store keeps; LockPosition and Tranche
are derived read models.  All are frozen dataclasses with integer amounts
and integer second timestamps -- no floats, no ORM dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Lock:
    """
    One deposit: amount, start time and last-claim checkpoint.

    Contract:
        - locked_amount > 0 for every stored lock.
        - last_claimed_at is None until the first successful claim; after a
          claim it holds the clock reading at which the vested-but-unclaimed
          balance was reset to zero.
    """

    locked_amount: int
    locked_at: int
    last_claimed_at: int | None = None

    def with_claim(self, claimed_at: int) -> Lock:
        """Return a copy with the claim checkpoint advanced to ``claimed_at``."""
        return replace(self, last_claimed_at=claimed_at)


@dataclass(frozen=True)
class Tranche:
    """A slice of a lock that vests at ``unlocks_at``."""

    unlocks_at: int
    amount: int
    immediate: bool = False


@dataclass(frozen=True)
class LockPosition:
    """
    Snapshot of an account's lock evaluated at a single clock reading.

    ``lock`` is None when the account never deposited; all amounts are then
    zero.
    """

    account_id: str
    evaluated_at: int
    lock: Lock | None
    locked_remaining: int
    claimed_total: int
    pending: int

    @property
    def can_deposit(self) -> bool:
        """True iff a new lock may replace the current one."""
        return self.locked_remaining == 0 and self.pending == 0
