"""
Pytest fixtures for the vesting kernel test suite.

Provides:
- Structured logging setup and a log-capture fixture
- A SQLite (or $DATABASE_URL) engine shared by the whole session, with
  per-test isolation via an outer transaction that is rolled back
- Deterministic clock, in-memory store and custody, and ledgers wired
  against either store

Environment Variables:
- DATABASE_URL: database URL for the SQL-backed tests.  Defaults to an
  in-memory SQLite database.
"""

import json
import logging
import os
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from vesting_kernel.db.base import Base
from vesting_kernel.db.engine import init_engine_from_url, reset_engine
from vesting_kernel.domain.clock import DeterministicClock
from vesting_kernel.domain.custody import InMemoryCustody
from vesting_kernel.domain.store import InMemoryLockStore
from vesting_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
import vesting_kernel.models  # noqa: F401  (registers tables on Base.metadata)
from vesting_kernel.services.lock_ledger_service import LockLedgerService
from vesting_kernel.services.lock_store import SqlLockStore

# Lock start used by most tests: 2024-01-01T12:00:00Z
T0 = DeterministicClock.DEFAULT_EPOCH
DAY = 86_400

# Custodial pool large enough for every payout in the suite
CUSTODY_FLOAT = 10**30

DEFAULT_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture vesting_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.deposit("alice", 1_000)
            logs = captured_logs()
            assert any(r["message"] == "lock_deposited" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("vesting_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine (and schema) for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()
    reset_engine()


@pytest.fixture(scope="function")
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer transaction on a dedicated connection; any
    ``session.commit()`` inside the test only releases a savepoint, and the
    outer transaction is rolled back at teardown.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Ledger collaborators
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(T0)


@pytest.fixture
def custody() -> InMemoryCustody:
    return InMemoryCustody(balance=CUSTODY_FLOAT)


@pytest.fixture
def memory_store() -> InMemoryLockStore:
    return InMemoryLockStore()


@pytest.fixture
def ledger(memory_store, clock, custody) -> LockLedgerService:
    """LockLedgerService over the in-memory store."""
    return LockLedgerService(memory_store, clock, custody)


@pytest.fixture
def sql_store(session) -> SqlLockStore:
    return SqlLockStore(session)


@pytest.fixture
def sql_ledger(sql_store, clock, custody) -> LockLedgerService:
    """LockLedgerService over the SQL store."""
    return LockLedgerService(sql_store, clock, custody)
