"""
End-to-end wiring: settings -> engine -> ledger_scope transactions.

Each test gets its own in-memory SQLite engine through init_from_settings
and tears it down with reset_engine.
"""

import pytest

from vesting_kernel.bootstrap import init_from_settings, ledger_scope
from vesting_kernel.config import DatabaseSettings, LedgerSettings, LoggingSettings
from vesting_kernel.db.engine import get_engine, reset_engine
from vesting_kernel.domain.clock import DeterministicClock
from vesting_kernel.domain.custody import InMemoryCustody
from vesting_kernel.domain.values import Lock
from vesting_kernel.exceptions import TransferFailedError
from vesting_kernel.services.lock_store import SqlLockStore

T0 = DeterministicClock.DEFAULT_EPOCH
DAY = 86_400


@pytest.fixture
def engine():
    settings = LedgerSettings(
        database=DatabaseSettings(url="sqlite://"),
        logging=LoggingSettings(level="DEBUG"),
    )
    eng = init_from_settings(settings)
    yield eng
    reset_engine()


@pytest.fixture
def custody() -> InMemoryCustody:
    return InMemoryCustody(balance=10_000)


class TestInitFromSettings:
    def test_engine_is_registered(self, engine):
        assert get_engine() is engine
        assert engine.dialect.name == "sqlite"

    def test_schema_created(self, engine):
        from sqlalchemy import inspect

        assert "vesting_locks" in inspect(engine).get_table_names()


class TestLedgerScope:
    def test_commit_is_visible_to_next_scope(self, engine, custody):
        clock = DeterministicClock(T0)

        with ledger_scope(custody, clock) as ledger:
            ledger.deposit("alice", 1000)

        with ledger_scope(custody, clock) as ledger:
            assert ledger.query_lock("alice") == Lock(1000, T0)
            assert ledger.claim("alice") == 500

        with ledger_scope(custody, clock) as ledger:
            assert ledger.claimed_total("alice") == 500

    def test_error_rolls_back_scope(self, engine, custody):
        clock = DeterministicClock(T0)

        with pytest.raises(RuntimeError):
            with ledger_scope(custody, clock) as ledger:
                ledger.deposit("alice", 1000)
                raise RuntimeError("host aborted the call")

        with ledger_scope(custody, clock) as ledger:
            assert ledger.query_lock("alice") is None

    def test_failed_claim_leaves_committed_lock(self, engine, custody):
        clock = DeterministicClock(T0)
        with ledger_scope(custody, clock) as ledger:
            ledger.deposit("alice", 1000)

        clock.advance_days(1)
        custody.fail_next()
        with pytest.raises(TransferFailedError):
            with ledger_scope(custody, clock) as ledger:
                ledger.claim("alice")

        with ledger_scope(custody, clock) as ledger:
            assert ledger.query_lock("alice").last_claimed_at is None
            assert ledger.pending("alice") == 600

    def test_defaults_to_system_clock(self, engine, custody):
        with ledger_scope(custody) as ledger:
            lock = ledger.deposit("bob", 10)

        assert lock.locked_at > T0

    def test_store_counts_accounts(self, engine, custody):
        from vesting_kernel.db.engine import session_scope

        clock = DeterministicClock(T0)
        with ledger_scope(custody, clock) as ledger:
            ledger.deposit("alice", 1000)
            ledger.deposit("bob", 20)

        with session_scope() as session:
            assert SqlLockStore(session).count() == 2


class TestDbPackage:
    def test_exports_resolve(self):
        import vesting_kernel.db as db

        for name in db.__all__:
            assert getattr(db, name) is not None

    def test_session_requires_engine(self, monkeypatch):
        from vesting_kernel.db import engine as engine_module
        from vesting_kernel.db import get_session

        monkeypatch.setattr(engine_module, "_SessionFactory", None)

        with pytest.raises(RuntimeError, match="not initialized"):
            get_session()
