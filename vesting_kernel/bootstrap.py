"""
Wiring: settings -> logging + engine -> ledger inside a transaction.

The hosting environment calls ``init_from_settings()`` once at start-up and
then runs each invocation inside ``ledger_scope()``.  One scope is one
serialized invocation: it commits on success and rolls back on any error.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.engine import Engine

from vesting_kernel.config import LedgerSettings
from vesting_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from vesting_kernel.domain.clock import Clock, SystemClock
from vesting_kernel.domain.custody import CustodyGateway
from vesting_kernel.logging_config import configure_logging
from vesting_kernel.services.lock_ledger_service import LockLedgerService
from vesting_kernel.services.lock_store import SqlLockStore


def init_from_settings(settings: LedgerSettings, create_schema: bool = True) -> Engine:
    """Configure logging and the database engine from ``settings``."""
    configure_logging(level=settings.logging.level_number)
    db = settings.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    if create_schema:
        create_tables()
    return engine


@contextmanager
def ledger_scope(
    custody: CustodyGateway,
    clock: Clock | None = None,
) -> Iterator[LockLedgerService]:
    """
    Yield a LockLedgerService bound to a fresh transactional session.

    Usage:
        with ledger_scope(custody) as ledger:
            ledger.claim(caller)
    """
    with session_scope() as session:
        yield LockLedgerService(SqlLockStore(session), clock or SystemClock(), custody)
