"""
Pure domain layer.

Value objects, the vesting schedule, and the ports (clock, store, custody)
the ledger is wired against.  Nothing here imports SQLAlchemy or touches
I/O, except SystemClock which reads wall-clock time.
"""

from vesting_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from vesting_kernel.domain.custody import CustodyGateway, InMemoryCustody
from vesting_kernel.domain.schedule import VestingSchedule
from vesting_kernel.domain.store import InMemoryLockStore, LockStore
from vesting_kernel.domain.values import Lock, LockPosition, Tranche

__all__ = [
    "Clock",
    "CustodyGateway",
    "DeterministicClock",
    "InMemoryCustody",
    "InMemoryLockStore",
    "Lock",
    "LockPosition",
    "LockStore",
    "SequentialClock",
    "SystemClock",
    "Tranche",
    "VestingSchedule",
]
