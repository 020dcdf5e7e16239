"""ORM models for the vesting kernel."""

from vesting_kernel.models.lock import VestingLock

__all__ = [
    "VestingLock",
]
