"""
Tests for the structured logging of ledger events (vesting_kernel/logging_config.py).

The records asserted on here are the ones operators rely on: rejected
deposits, failed payouts and the pending-underflow guard, each as a single
JSON line carrying the bound account and operation.
"""

import json
import logging
from io import StringIO

import pytest

from vesting_kernel.domain.clock import DeterministicClock
from vesting_kernel.exceptions import PriorLockActiveError, TransferFailedError
from vesting_kernel.logging_config import (
    LOGGER_NAMESPACE,
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)

T0 = DeterministicClock.DEFAULT_EPOCH
DAY = 86_400


def _events(records: list[dict], message: str) -> list[dict]:
    return [r for r in records if r["message"] == message]


class TestLedgerEventRecords:
    def test_deposit_rejected(self, ledger, captured_logs):
        ledger.deposit("alice", 1000)

        with pytest.raises(PriorLockActiveError):
            ledger.deposit("alice", 1000)

        (record,) = _events(captured_logs(), "deposit_rejected")
        assert record["level"] == "WARNING"
        assert record["logger"] == "vesting_kernel.services.lock_ledger"
        assert record["account_id"] == "alice"
        assert record["operation"] == "deposit"
        assert record["error_code"] == "PRIOR_LOCK_ACTIVE"
        assert "500 still locked" in record["reason"]

    def test_claim_transfer_failed_carries_exception_fields(
        self, ledger, clock, custody, captured_logs
    ):
        ledger.deposit("alice", 1000)
        clock.advance_days(1)
        custody.fail_next("recipient unreachable")

        with pytest.raises(TransferFailedError):
            ledger.claim("alice")

        (record,) = _events(captured_logs(), "claim_transfer_failed")
        assert record["level"] == "ERROR"
        assert record["operation"] == "claim"
        assert record["amount"] == 600
        assert record["now"] == T0 + DAY
        assert record["exc_type"] == "TransferFailedError"
        assert record["exc_code"] == "TRANSFER_FAILED"
        assert record["exc_account_id"] == "alice"
        assert record["exc_amount"] == 600
        assert record["exc_reason"] == "recipient unreachable"
        assert "Traceback" in record["traceback"]

    def test_pending_underflow_guarded(self, ledger, clock, captured_logs):
        ledger.deposit("alice", 1000)
        clock.advance_days(3)
        ledger.claim("alice")
        clock.set_time(T0 + DAY)

        assert ledger.claim("alice") == 0

        (record,) = _events(captured_logs(), "pending_underflow_guarded")
        assert record["level"] == "WARNING"
        assert record["operation"] == "claim"
        assert record["now"] == T0 + DAY
        assert record["last_claimed_at"] == T0 + 3 * DAY
        assert record["vested_now"] == 600
        assert record["claimed_total"] == 800

    def test_large_amounts_stay_exact(self, ledger, captured_logs):
        ledger.deposit("whale", 2**128 - 1)

        (record,) = _events(captured_logs(), "lock_deposited")
        assert record["locked_amount"] == 2**128 - 1

    def test_every_line_is_one_json_object(self, ledger, clock, captured_logs):
        ledger.deposit("alice", 1000)
        ledger.claim("alice")
        ledger.claim("alice")

        records = captured_logs()
        assert [r["message"] for r in records if r["logger"].endswith("lock_ledger")] == [
            "lock_deposited",
            "claim_completed",
            "claim_noop",
        ]
        for record in records:
            assert {"ts", "level", "logger", "message"} <= record.keys()

    def test_queries_log_without_context(self, ledger, clock, captured_logs):
        ledger.deposit("alice", 1000)
        clock.advance_days(2)
        ledger.claim("alice")
        clock.set_time(T0)

        ledger.pending("alice")

        record = _events(captured_logs(), "pending_underflow_guarded")[-1]
        assert "account_id" not in record
        assert "operation" not in record


class TestLogContext:
    def test_unbound_is_empty(self):
        assert LogContext.get_all() == {}

    def test_bind_sets_and_restores(self):
        with LogContext.bind(account_id="alice", operation="claim"):
            assert LogContext.get_all() == {"account_id": "alice", "operation": "claim"}

        assert LogContext.get_all() == {}

    def test_nested_bind_restores_outer(self):
        with LogContext.bind(account_id="alice", operation="deposit"):
            with LogContext.bind(account_id="bob", operation="claim"):
                assert LogContext.get_all()["account_id"] == "bob"
            assert LogContext.get_all() == {"account_id": "alice", "operation": "deposit"}

    def test_bind_restores_after_exception(self):
        with pytest.raises(TransferFailedError):
            with LogContext.bind(account_id="alice", operation="claim"):
                raise TransferFailedError("alice", 5, "boom")

        assert LogContext.get_all() == {}


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _fresh_logging(self):
        reset_logging()
        yield
        reset_logging()

    @staticmethod
    def _handler() -> tuple[logging.Handler, StringIO]:
        stream = StringIO()
        return logging.StreamHandler(stream), stream

    def test_first_call_wins(self):
        first, _ = self._handler()
        second, _ = self._handler()

        configure_logging(handler=first)
        configure_logging(handler=second)

        root = logging.getLogger(LOGGER_NAMESPACE)
        assert first in root.handlers
        assert second not in root.handlers
        assert isinstance(first.formatter, StructuredFormatter)

    def test_reset_allows_reconfiguring(self):
        first, _ = self._handler()
        second, _ = self._handler()
        configure_logging(handler=first)

        reset_logging()
        configure_logging(handler=second)

        root = logging.getLogger(LOGGER_NAMESPACE)
        assert first not in root.handlers
        assert second in root.handlers

    def test_level_by_name(self):
        handler, stream = self._handler()
        configure_logging(handler=handler, level="WARNING")

        get_logger("services.lock_ledger").info("lock_deposited")
        get_logger("services.lock_ledger").warning("deposit_rejected")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [r["message"] for r in lines] == ["deposit_rejected"]

    def test_get_logger_namespace(self):
        assert get_logger("db.engine").name == "vesting_kernel.db.engine"
