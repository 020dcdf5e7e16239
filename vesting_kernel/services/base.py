"""
BaseService -- abstract base for kernel services that talk to SQLAlchemy.

Responsibility:
    Provides the common constructor and session-handling contract.  A
    concrete service receives a SQLAlchemy ``Session`` and persists with
    ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back the outer transaction themselves.  The
    caller (``session_scope()``, ``bootstrap.ledger_scope()`` or a test
    harness) owns commit/rollback.  Savepoints opened with
    ``session.begin_nested()`` are the only nested scope a service may
    roll back.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from vesting_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for session-backed services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session
