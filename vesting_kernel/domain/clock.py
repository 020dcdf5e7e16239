"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that the ledger never calls
    ``time.time()`` directly.  The clock is the only legitimate source of a
    lock's ``locked_at`` and of every claim checkpoint.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Units:
    Integer seconds.  The vesting schedule assumes a day of 86,400 units.

Failure modes:
    - SequentialClock raises RuntimeError if exhausted and no fallback time.
"""

import time
from abc import ABC, abstractmethod
from typing import Iterator


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need the current time receive a Clock instance
        via constructor injection.

    Guarantees:
        - ``now()`` returns an integer number of seconds.
        - Readings are monotonically non-decreasing.
    """

    @abstractmethod
    def now(self) -> int:
        """Get the current time in seconds."""
        ...


class SystemClock(Clock):
    """
    Production clock that returns wall-clock Unix time in whole seconds.

    Non-goals:
        Not suitable for deterministic replay or testing.
    """

    def now(self) -> int:
        return int(time.time())


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until ``advance()``
          or ``set_time()`` is called.
        - ``tick()`` advances by exactly 1 second and returns the new time.
    """

    # 2024-01-01T12:00:00Z
    DEFAULT_EPOCH = 1_704_110_400

    def __init__(self, fixed_time: int | None = None):
        """
        Initialize with optional fixed time.

        Args:
            fixed_time: If provided, clock starts at this timestamp.
                       If None, uses DEFAULT_EPOCH.
        """
        self._fixed_time = self.DEFAULT_EPOCH if fixed_time is None else fixed_time
        self._advance_seconds = 0

    def now(self) -> int:
        return self._fixed_time + self._advance_seconds

    def set_time(self, time: int) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def advance_days(self, days: int = 1) -> None:
        """Advance the clock by whole schedule days."""
        self.advance(days * 86_400)

    def tick(self) -> int:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self.now()


class SequentialClock(Clock):
    """
    Clock that returns sequential times from a predefined list.

    After exhaustion, repeats the last value.

    Raises:
        ValueError: If initialized with an empty list.
        RuntimeError: If exhausted with no recorded last time.
    """

    def __init__(self, times: list[int]):
        if not times:
            raise ValueError("SequentialClock requires at least one time")
        self._times: Iterator[int] = iter(times)
        self._last_time: int | None = None
        self._exhausted = False

    def now(self) -> int:
        """Get the next time in sequence."""
        if self._exhausted:
            if self._last_time is None:
                raise RuntimeError("SequentialClock has no times")
            return self._last_time

        try:
            self._last_time = next(self._times)
            return self._last_time
        except StopIteration:
            self._exhausted = True
            if self._last_time is None:
                raise RuntimeError("SequentialClock exhausted with no times")
            return self._last_time
