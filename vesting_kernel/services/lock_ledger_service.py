"""
LockLedgerService -- lock lifecycle: deposit, query, claim.

Responsibility:
    Owns the one-lock-per-account rules.  Every operation reads the
    caller's lock from the injected LockStore, derives amounts through
    VestingSchedule at a single clock reading, applies the lifecycle rules,
    and writes back (or rejects).

Architecture position:
    Kernel > Services -- imperative shell around the pure VestingSchedule.
    Collaborators are injected: LockStore (persistence), Clock (time),
    CustodyGateway (payouts).  The caller identity is passed per call as
    ``account_id``.

Lifecycle per account:
    NoLock --deposit--> Locked --claim--> Locked ... --> Vested&Claimed
    Vested&Claimed --deposit--> Locked
    ``deposit`` succeeds only from NoLock or Vested&Claimed
    (locked_remaining == 0 and pending == 0).

Invariants enforced:
    - Claim-once: claim writes ``last_claimed_at = now`` before paying out,
      inside ``store.atomic()``.  A second claim before the next tranche
      finds nothing pending.
    - All-or-nothing claim: if custody refuses the payout, the checkpoint
      write is rolled back and TransferFailedError propagates.
    - Rejected deposits leave the stored lock untouched.
    - Trusted start time: ``deposit`` always takes ``locked_at`` from the
      clock.  The caller-supplied start time exists only on ``seed_lock``.

Failure modes:
    - ZeroAmountError / InvalidAmountError: bad deposit amount.
    - PriorLockActiveError: previous lock still has locked funds.
    - UnclaimedPendingFundsError: previous lock has vested, unclaimed funds.
    - TransferFailedError: custody refused the claim payout.
    - ClockError: the clock returned a non-integer.
"""

from vesting_kernel.db.types import is_valid_amount
from vesting_kernel.domain.clock import Clock
from vesting_kernel.domain.custody import CustodyGateway
from vesting_kernel.domain.schedule import VestingSchedule
from vesting_kernel.domain.store import LockStore
from vesting_kernel.domain.values import Lock, LockPosition
from vesting_kernel.exceptions import (
    ClockError,
    InvalidAmountError,
    LockError,
    PriorLockActiveError,
    TransferFailedError,
    UnclaimedPendingFundsError,
    ZeroAmountError,
)
from vesting_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.lock_ledger")


class LockLedgerService:
    """
    Per-account time-locked vesting ledger.

    Usage:
        ledger = LockLedgerService(store, clock, custody)
        ledger.deposit("alice", 1_000)
        ledger.pending("alice")        # 500 right away
        ledger.claim("alice")          # pays out 500
    """

    def __init__(
        self,
        store: LockStore,
        clock: Clock,
        custody: CustodyGateway,
    ):
        self._store = store
        self._clock = clock
        self._custody = custody
        self._schedule = VestingSchedule

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _now(self) -> int:
        timestamp = self._clock.now()
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            raise ClockError(timestamp)
        return timestamp

    def _locked_remaining(self, lock: Lock | None, now: int) -> int:
        if lock is None:
            return 0
        return self._schedule.locked_remaining(lock, now)

    def _claimed_total(self, lock: Lock | None) -> int:
        if lock is None:
            return 0
        return self._schedule.vested(lock, lock.last_claimed_at)

    def _pending(self, lock: Lock | None, now: int) -> int:
        if lock is None:
            return 0
        vested_now = self._schedule.vested(lock, now)
        claimed = self._schedule.vested(lock, lock.last_claimed_at)
        if vested_now < claimed:
            # Only reachable if the clock moved behind the last claim.
            logger.warning(
                "pending_underflow_guarded",
                extra={
                    "now": now,
                    "last_claimed_at": lock.last_claimed_at,
                    "vested_now": vested_now,
                    "claimed_total": claimed,
                },
            )
            return 0
        return vested_now - claimed

    def _validate_amount(self, account_id: str, amount: object) -> int:
        if not is_valid_amount(amount):
            raise InvalidAmountError(account_id, amount)
        if amount == 0:
            raise ZeroAmountError(account_id)
        return amount

    def _open_lock(
        self,
        account_id: str,
        amount: object,
        locked_at: int,
        now: int,
    ) -> Lock:
        """Check deposit preconditions at ``now`` and store a fresh lock."""
        try:
            amount = self._validate_amount(account_id, amount)

            current = self._store.get(account_id)
            remaining = self._locked_remaining(current, now)
            if remaining != 0:
                raise PriorLockActiveError(account_id, remaining)

            pending = self._pending(current, now)
            if pending != 0:
                raise UnclaimedPendingFundsError(account_id, pending)
        except LockError as exc:
            logger.warning(
                "deposit_rejected",
                extra={"error_code": exc.code, "reason": str(exc)},
            )
            raise

        lock = Lock(locked_amount=amount, locked_at=locked_at)
        self._store.set(account_id, lock)
        return lock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query_lock(self, account_id: str) -> Lock | None:
        """Current stored lock for ``account_id``, or None if it never deposited."""
        return self._store.get(account_id)

    def locked_remaining(self, account_id: str) -> int:
        """Funds still time-locked (not yet vested) right now."""
        return self._locked_remaining(self._store.get(account_id), self._now())

    def claimed_total(self, account_id: str) -> int:
        """Cumulative amount withdrawn as of the last claim (0 if never claimed)."""
        return self._claimed_total(self._store.get(account_id))

    def pending(self, account_id: str) -> int:
        """Vested but not yet withdrawn amount right now."""
        return self._pending(self._store.get(account_id), self._now())

    def position(self, account_id: str) -> LockPosition:
        """All derived amounts for ``account_id`` at one clock reading."""
        now = self._now()
        lock = self._store.get(account_id)
        return LockPosition(
            account_id=account_id,
            evaluated_at=now,
            lock=lock,
            locked_remaining=self._locked_remaining(lock, now),
            claimed_total=self._claimed_total(lock),
            pending=self._pending(lock, now),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def deposit(self, account_id: str, amount: int) -> Lock:
        """
        Lock ``amount`` (the value attached to the call) for ``account_id``.

        The lock starts at the current clock reading.

        Returns:
            The newly stored Lock.

        Raises:
            ZeroAmountError: amount is 0.
            InvalidAmountError: amount is negative or not an int.
            PriorLockActiveError: previous lock still has locked funds.
            UnclaimedPendingFundsError: previous lock has unclaimed funds.
        """
        with LogContext.bind(account_id=account_id, operation="deposit"):
            now = self._now()
            lock = self._open_lock(account_id, amount, locked_at=now, now=now)
            logger.info(
                "lock_deposited",
                extra={"locked_amount": lock.locked_amount, "locked_at": now},
            )
            return lock

    def seed_lock(
        self,
        account_id: str,
        amount: int,
        declared_start_time: int,
    ) -> Lock:
        """
        Privileged: store a lock with a caller-declared start time.

        For migrations and test fixtures only.  A start time in the past
        makes the lock vest immediately, so this must never be reachable
        from the funded deposit path.  The same preconditions as
        ``deposit`` apply.
        """
        with LogContext.bind(account_id=account_id, operation="seed_lock"):
            if not isinstance(declared_start_time, int) or isinstance(
                declared_start_time, bool
            ):
                raise ClockError(declared_start_time)
            now = self._now()
            lock = self._open_lock(
                account_id, amount, locked_at=declared_start_time, now=now
            )
            logger.warning(
                "lock_seeded",
                extra={
                    "locked_amount": lock.locked_amount,
                    "locked_at": declared_start_time,
                    "clock_now": now,
                },
            )
            return lock

    def claim(self, account_id: str) -> int:
        """
        Withdraw everything pending for ``account_id``.

        Nothing pending is a successful no-op.  Otherwise the lock's
        checkpoint advances to now and the pending amount is paid out,
        both or neither.

        Returns:
            The amount paid out (0 for the no-op).

        Raises:
            TransferFailedError: custody refused the payout; the stored
                lock is unchanged.
        """
        with LogContext.bind(account_id=account_id, operation="claim"):
            now = self._now()
            lock = self._store.get(account_id)
            amount = self._pending(lock, now)

            if amount == 0:
                logger.debug("claim_noop", extra={"now": now})
                return 0

            checkpointed = lock.with_claim(now)
            try:
                with self._store.atomic():
                    self._store.set(account_id, checkpointed)
                    self._custody.transfer(account_id, amount)
            except TransferFailedError:
                logger.error(
                    "claim_transfer_failed",
                    exc_info=True,
                    extra={"amount": amount, "now": now},
                )
                raise

            logger.info(
                "claim_completed",
                extra={
                    "amount": amount,
                    "claimed_at": now,
                    "claimed_total": self._claimed_total(checkpointed),
                },
            )
            return amount
