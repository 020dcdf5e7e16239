"""
VestingSchedule -- the fixed half-now, tenth-per-day release curve.

Responsibility:
    Maps a Lock and an evaluation time to the cumulative amount vested by
    that time.  Pure: no storage, no clock, no hidden state.

Architecture position:
    Kernel > Domain -- pure functional core.  Called by LockLedgerService
    for every derived quantity (locked remaining, claimed total, pending).

Schedule shape:
    1. ``locked_amount // 2`` vests as soon as any evaluation time is given.
    2. The rest forms a pool.  At each full day after ``locked_at`` one
       daily tranche of ``locked_amount // 10`` leaves the pool.
    3. When the pool left after a tranche would be smaller than one daily
       tranche, the whole pool is released in that step.  This absorbs the
       floor-division remainder so the tranches always sum to
       ``locked_amount``.  A lock too small for a non-zero daily tranche
       releases its pool at the first day boundary.

Invariants enforced:
    - vested(lock, t) is non-decreasing in t.
    - vested(lock, t) <= lock.locked_amount.
    - vested(lock, None) == 0.
"""

from typing import ClassVar, Iterator

from vesting_kernel.domain.values import Lock, Tranche


class VestingSchedule:
    """Release curve shared by every lock (integer arithmetic only)."""

    DAY_SECONDS: ClassVar[int] = 86_400
    IMMEDIATE_DIVISOR: ClassVar[int] = 2
    DAILY_DIVISOR: ClassVar[int] = 10

    @classmethod
    def immediate_tranche(cls, lock: Lock) -> int:
        return lock.locked_amount // cls.IMMEDIATE_DIVISOR

    @classmethod
    def daily_tranche(cls, lock: Lock) -> int:
        return lock.locked_amount // cls.DAILY_DIVISOR

    @classmethod
    def _daily_releases(cls, lock: Lock) -> Iterator[Tranche]:
        """Yield the daily tranches in unlock order until the pool is empty."""
        daily = cls.daily_tranche(lock)
        pool = lock.locked_amount - cls.immediate_tranche(lock)
        boundary = lock.locked_at

        while pool > 0:
            boundary += cls.DAY_SECONDS
            # Final tranche takes whatever is left.
            if daily == 0 or pool - daily < daily:
                release = pool
            else:
                release = daily
            pool -= release
            yield Tranche(unlocks_at=boundary, amount=release)

    @classmethod
    def vested(cls, lock: Lock, time: int | None) -> int:
        """
        Cumulative amount vested at ``time``.

        Args:
            lock: The lock being evaluated.
            time: Evaluation time in seconds, or None for "never evaluated"
                  (the baseline used when no claim has happened yet).

        Returns:
            0 when ``time`` is None, otherwise the immediate tranche plus
            every daily tranche whose boundary is at or before ``time``.
        """
        if time is None:
            return 0

        claim = cls.immediate_tranche(lock)
        for tranche in cls._daily_releases(lock):
            if tranche.unlocks_at > time:
                break
            claim += tranche.amount
        return claim

    @classmethod
    def locked_remaining(cls, lock: Lock, time: int) -> int:
        """Amount of ``lock`` still time-locked at ``time``."""
        return lock.locked_amount - cls.vested(lock, time)

    @classmethod
    def tranches(cls, lock: Lock) -> tuple[Tranche, ...]:
        """
        Full release plan for ``lock``.

        The first entry is the immediate tranche (unlocks_at == locked_at).
        Amounts sum to ``lock.locked_amount``.
        """
        immediate = Tranche(
            unlocks_at=lock.locked_at,
            amount=cls.immediate_tranche(lock),
            immediate=True,
        )
        return (immediate, *cls._daily_releases(lock))

    @classmethod
    def fully_vested_at(cls, lock: Lock) -> int:
        """First instant at which the whole lock has vested."""
        return cls.tranches(lock)[-1].unlocks_at
