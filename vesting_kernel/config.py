"""
Settings loader (``vesting_kernel.config``).

Responsibility
--------------
Loads the ledger's YAML settings file and parses it into frozen dataclasses.
``get_active_settings()`` is the single runtime entry point; no other
component reads settings files or environment variables.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or mistyped keys  -> ``ConfigurationError``.

Audit relevance
---------------
Every ``get_active_settings()`` call logs a ``settings_loaded`` trace with a
SHA-256 checksum of the parsed settings, so the database target and logging
level in force can be tied back to a specific file version.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

from vesting_kernel.exceptions import ConfigurationError
from vesting_kernel.logging_config import get_logger

logger = get_logger("config")

# Packaged default: in-memory SQLite, INFO logging
_DEFAULT_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection parameters handed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    @property
    def level_number(self) -> int:
        return logging.getLevelNamesMapping()[self.level]


@dataclass(frozen=True)
class LedgerSettings:
    """Parsed settings file."""

    database: DatabaseSettings
    logging: LoggingSettings
    source: str = "<memory>"

    @property
    def checksum(self) -> str:
        data = asdict(self)
        data.pop("source")
        return compute_checksum(data)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _expect(data: dict[str, Any], key: str, kind: type, source: str) -> Any:
    if key not in data:
        raise ConfigurationError(source, f"missing required key '{key}'")
    value = data[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigurationError(
            source, f"'{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _optional(
    data: dict[str, Any], key: str, kind: type, source: str, default: Any
) -> Any:
    return _expect(data, key, kind, source) if key in data else default


def parse_database(data: dict[str, Any], source: str) -> DatabaseSettings:
    """Parse the ``database`` section."""
    defaults = DatabaseSettings(url="")
    return DatabaseSettings(
        url=_expect(data, "url", str, source),
        echo=_optional(data, "echo", bool, source, defaults.echo),
        pool_size=_optional(data, "pool_size", int, source, defaults.pool_size),
        max_overflow=_optional(
            data, "max_overflow", int, source, defaults.max_overflow
        ),
        pool_timeout=_optional(
            data, "pool_timeout", int, source, defaults.pool_timeout
        ),
        pool_recycle=_optional(
            data, "pool_recycle", int, source, defaults.pool_recycle
        ),
    )


def parse_logging(data: dict[str, Any], source: str) -> LoggingSettings:
    """Parse the optional ``logging`` section."""
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(source, f"unknown log level '{level}'")
    return LoggingSettings(level=level)


def parse_settings(data: dict[str, Any], source: str = "<memory>") -> LedgerSettings:
    """
    Parse a settings dict (as loaded from YAML) into ``LedgerSettings``.

    Raises:
        ConfigurationError: if the ``database`` section or its ``url`` is
            missing, or a value has the wrong type.
    """
    database = _expect(data, "database", dict, source)
    logging_section = data.get("logging") or {}
    if not isinstance(logging_section, dict):
        raise ConfigurationError(source, "'logging' must be a mapping")

    return LedgerSettings(
        database=parse_database(database, source),
        logging=parse_logging(logging_section, source),
        source=source,
    )


def load_settings(path: Path) -> LedgerSettings:
    """Load and parse one settings file."""
    return parse_settings(load_yaml_file(path), source=str(path))


def get_active_settings(config_path: Path | None = None) -> LedgerSettings:
    """
    The ONLY public settings entry point.

    Args:
        config_path: Settings file to load.  Defaults to the packaged
            ``settings.yaml``.

    Returns:
        Frozen LedgerSettings.
    """
    settings = load_settings(config_path or _DEFAULT_SETTINGS_PATH)
    logger.info(
        "settings_loaded",
        extra={
            "source": settings.source,
            "checksum": settings.checksum,
            "log_level": settings.logging.level,
        },
    )
    return settings
