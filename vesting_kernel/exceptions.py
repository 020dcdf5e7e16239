"""
Typed Exception Hierarchy for the Vesting Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A rejected deposit or a failed withdrawal must be distinguishable without
parsing message strings:

    try:
        ledger.deposit(account_id, amount)
    except UnclaimedPendingFundsError as e:
        prompt_claim(e.account_id, e.pending)     # Structured data
        api_response(code=e.code)                 # Machine-readable

Every exception class carries a ``code`` class attribute and stores its
context as attributes, so it survives logging (see StructuredFormatter,
which copies public attributes into ``exc_*`` fields) and serialization.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    VestingKernelError (base)
    |
    +-- LockError
    |   +-- ZeroAmountError
    |   +-- InvalidAmountError
    |   +-- PriorLockActiveError
    |   +-- UnclaimedPendingFundsError
    |
    +-- CustodyError
    |   +-- TransferFailedError
    |
    +-- ClockError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Lock            | ZERO_AMOUNT                 | Deposit of 0 units
                | INVALID_AMOUNT              | Negative or non-integer amount
                | PRIOR_LOCK_ACTIVE           | Previous lock still has locked funds
                | UNCLAIMED_PENDING_FUNDS     | Previous lock has vested, unclaimed funds
----------------|-----------------------------|-----------------------------------------
Custody         | TRANSFER_FAILED             | Payout during claim did not succeed
----------------|-----------------------------|-----------------------------------------
Clock           | CLOCK_ERROR                 | Clock returned a non-integer timestamp
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Settings file missing required keys

All Lock and Custody errors are rejections: the stored lock is left exactly
as it was before the call.  A claim with nothing pending is NOT an error.
"""


class VestingKernelError(Exception):
    """
    Base exception for all vesting kernel errors.

    All subclasses must define a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "VESTING_KERNEL_ERROR"


# Lock lifecycle exceptions


class LockError(VestingKernelError):
    """Base exception for rejected lock lifecycle transitions."""

    code: str = "LOCK_ERROR"


class ZeroAmountError(LockError):
    """Deposit attempted with an amount of zero."""

    code: str = "ZERO_AMOUNT"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Zero tokens sent by {account_id}")


class InvalidAmountError(LockError):
    """Amount is negative or not an integer."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, account_id: str, amount: object):
        self.account_id = account_id
        self.amount = repr(amount)
        super().__init__(
            f"Invalid amount {amount!r} for {account_id}: "
            "must be a non-negative integer"
        )


class PriorLockActiveError(LockError):
    """Deposit attempted while the previous lock still holds locked funds."""

    code: str = "PRIOR_LOCK_ACTIVE"

    def __init__(self, account_id: str, locked_remaining: int):
        self.account_id = account_id
        self.locked_remaining = locked_remaining
        super().__init__(
            f"Previous lock period for {account_id} has not ended: "
            f"{locked_remaining} still locked"
        )


class UnclaimedPendingFundsError(LockError):
    """Deposit attempted while vested funds from the previous lock are unclaimed."""

    code: str = "UNCLAIMED_PENDING_FUNDS"

    def __init__(self, account_id: str, pending: int):
        self.account_id = account_id
        self.pending = pending
        super().__init__(
            f"Claim tokens from previous lock first: "
            f"{pending} pending for {account_id}"
        )


# Custody exceptions


class CustodyError(VestingKernelError):
    """Base exception for custody (token transfer) errors."""

    code: str = "CUSTODY_ERROR"


class TransferFailedError(CustodyError):
    """
    Custody refused or failed to move funds to the account.

    Raised by CustodyGateway implementations.  The claim that triggered the
    transfer is rolled back: last_claimed_at keeps its previous value.
    """

    code: str = "TRANSFER_FAILED"

    def __init__(self, account_id: str, amount: int, reason: str):
        self.account_id = account_id
        self.amount = amount
        self.reason = reason
        super().__init__(
            f"Transfer of {amount} to {account_id} failed: {reason}"
        )


# Clock exceptions


class ClockError(VestingKernelError):
    """Clock returned something that is not an integer timestamp."""

    code: str = "CLOCK_ERROR"

    def __init__(self, value: object):
        self.value = repr(value)
        super().__init__(f"Clock must return an integer timestamp, got {value!r}")


# Configuration exceptions


class ConfigurationError(VestingKernelError):
    """Settings file is malformed or missing required keys."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
