"""
CustodyGateway -- token payout boundary.

The ledger never holds balances itself.  Paying out a claim goes through a
CustodyGateway supplied by the hosting environment; a refused payout is
reported by raising TransferFailedError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from vesting_kernel.exceptions import TransferFailedError


class CustodyGateway(ABC):
    """Moves custody of funds to an account."""

    @abstractmethod
    def transfer(self, to: str, amount: int) -> None:
        """
        Transfer ``amount`` units to account ``to``.

        Raises:
            TransferFailedError: Insufficient balance, recipient rejection,
                or any other refusal.  Nothing has moved when it is raised.
        """
        ...


class InMemoryCustody(CustodyGateway):
    """
    Balance-holding custody for tests and demos.

    Holds a single pool (the ledger's own balance) and a per-account
    record of everything paid out.
    """

    def __init__(self, balance: int = 0):
        self.balance = balance
        self.paid_out: dict[str, int] = {}
        self.rejected_accounts: set[str] = set()
        self._fail_next: str | None = None

    def fund(self, amount: int) -> None:
        """Add ``amount`` to the custodial pool (a funded deposit)."""
        self.balance += amount

    def fail_next(self, reason: str = "simulated failure") -> None:
        """Make the next transfer fail with ``reason``."""
        self._fail_next = reason

    def transfer(self, to: str, amount: int) -> None:
        if self._fail_next is not None:
            reason, self._fail_next = self._fail_next, None
            raise TransferFailedError(to, amount, reason)
        if to in self.rejected_accounts:
            raise TransferFailedError(to, amount, "recipient rejected transfer")
        if amount > self.balance:
            raise TransferFailedError(
                to, amount, f"insufficient balance ({self.balance})"
            )

        self.balance -= amount
        self.paid_out[to] = self.paid_out.get(to, 0) + amount

    def total_paid(self, account_id: str) -> int:
        return self.paid_out.get(account_id, 0)
