"""
Structured JSON logging for the vesting kernel.

Every record emitted under the ``vesting_kernel`` logger tree becomes one
JSON line:

    {"ts": ..., "level": "WARNING", "logger": "vesting_kernel.services.lock_ledger",
     "message": "deposit_rejected", "account_id": "alice", "operation": "deposit",
     "error_code": "PRIOR_LOCK_ACTIVE", ...}

The envelope (ts, level, logger, message) is followed by the call context
bound by LockLedgerService (account and operation), the record's ``extra``
fields, and, when an exception is attached, its type, message, ``code`` and
public attributes as ``exc_*`` fields.
"""

__all__ = [
    "LOGGER_NAMESPACE",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

LOGGER_NAMESPACE = "vesting_kernel"


class LogContext:
    """Account and operation of the ledger call in progress (async-safe)."""

    _account_id: ContextVar[str | None] = ContextVar(
        "vesting_log_account_id", default=None
    )
    _operation: ContextVar[str | None] = ContextVar(
        "vesting_log_operation", default=None
    )

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Bound fields, omitting the unset ones."""
        fields = {
            "account_id": cls._account_id.get(),
            "operation": cls._operation.get(),
        }
        return {k: v for k, v in fields.items() if v is not None}

    @classmethod
    def clear(cls) -> None:
        cls._account_id.set(None)
        cls._operation.set(None)

    @classmethod
    @contextmanager
    def bind(cls, *, account_id: str, operation: str) -> Iterator[None]:
        """Attach ``account_id`` and ``operation`` to records logged inside the block."""
        account_token = cls._account_id.set(account_id)
        operation_token = cls._operation.set(operation)
        try:
            yield
        finally:
            cls._operation.reset(operation_token)
            cls._account_id.reset(account_token)


# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str) -> logging.Logger:
    """Logger ``vesting_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_installed_handler: logging.Handler | None = None
_install_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install one JSON handler on the ``vesting_kernel`` logger.

    Only the first call has any effect; later calls return immediately
    until ``reset_logging()``.  Without ``handler`` records go to stderr.
    """
    global _installed_handler
    with _install_lock:
        if _installed_handler is not None:
            return
        _installed_handler = handler or logging.StreamHandler(sys.stderr)

    _installed_handler.setFormatter(StructuredFormatter())
    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(_installed_handler)


def reset_logging() -> None:
    """Remove the handler installed by ``configure_logging``. Tests only."""
    global _installed_handler
    with _install_lock:
        handler, _installed_handler = _installed_handler, None
    root = logging.getLogger(LOGGER_NAMESPACE)
    if handler is not None:
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
