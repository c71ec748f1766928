"""Configuration utilities for BULKPAY.

This module centralizes small helpers and constants related to application
configuration. Settings are read from ``BULKPAY_*`` environment variables.
"""

import os
import sys
from dataclasses import dataclass
from importlib.resources import files
from typing import TextIO

from alembic.config import Config

DB_URL_ENV = "BULKPAY_DB_URL"

ALEMBIC_URL_KEY = "sqlalchemy.url"  # pragma: no mutate
ALEMBIC_SCRIPT_LOCATION_KEY = "script_location"  # pragma: no mutate

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class DatabaseUrlNotSetError(Exception):
    """Raised when the BULKPAY_DB_URL environment variable is not set."""


class InvalidSettingError(ValueError):
    """Raised when a BULKPAY_* environment variable holds a malformed value."""

    def __init__(self, name: str, value: str, expected: str) -> None:
        super().__init__(f"{name}={value!r} is invalid; expected {expected}.")
        self.name = name
        self.value = value


@dataclass(frozen=True)
class StorageSettings:
    """Tuning knobs for the SQLite store and its connection pool.

    Attributes:
        busy_timeout_ms: How long a unit of work waits for the write lock
            before failing with a lock timeout.
        enable_wal: Use write-ahead logging so readers never block on the writer.
        pool_size: Connections kept open in the pool.
        max_overflow: Extra connections allowed above ``pool_size``.
        pool_recycle_s: Maximum connection age before it is replaced.
        max_bound_parameters: Upper bound of ``?`` placeholders per statement.
    """

    busy_timeout_ms: int = 30_000
    enable_wal: bool = True
    pool_size: int = 5
    max_overflow: int = 20
    pool_recycle_s: int = 300
    max_bound_parameters: int = 999


def get_db_url() -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `BULKPAY_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `BULKPAY_DB_URL` is not set.
    """
    if not (url := os.environ.get(DB_URL_ENV)):
        raise DatabaseUrlNotSetError
    return url


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    if (raw := os.environ.get(name)) is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidSettingError(name, raw, "an integer") from e
    if value < minimum:
        raise InvalidSettingError(name, raw, f"an integer >= {minimum}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    if (raw := os.environ.get(name)) is None or not raw.strip():
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise InvalidSettingError(name, raw, "a boolean (true/false)")


def load_storage_settings() -> StorageSettings:
    """Build `StorageSettings` from ``BULKPAY_*`` environment variables.

    Unset or blank variables fall back to the defaults on `StorageSettings`.

    Raises:
        InvalidSettingError: If a variable is set to a malformed value.
    """
    defaults = StorageSettings()
    return StorageSettings(
        busy_timeout_ms=_env_int("BULKPAY_BUSY_TIMEOUT_MS", defaults.busy_timeout_ms),
        enable_wal=_env_bool("BULKPAY_ENABLE_WAL", defaults.enable_wal),
        pool_size=_env_int("BULKPAY_POOL_SIZE", defaults.pool_size, minimum=1),
        max_overflow=_env_int("BULKPAY_MAX_OVERFLOW", defaults.max_overflow),
        pool_recycle_s=_env_int("BULKPAY_POOL_RECYCLE_S", defaults.pool_recycle_s),
        max_bound_parameters=_env_int(
            "BULKPAY_MAX_BOUND_PARAMETERS", defaults.max_bound_parameters, minimum=1
        ),
    )


def build_alembic_config(
    db_url: str | None = None, stdout: TextIO = sys.stdout
) -> Config:
    """Build an Alembic `Config` object for BULKPAY's migrations.

    Sets only Alembic "main" options:
    - `sqlalchemy.url` → the database URL you pass
    - `script_location` → BULKPAY's packaged Alembic scripts

    Args:
        db_url: SQLAlchemy database URL (e.g., `sqlite:///payments.db`). Can be
            `None` (default) only in contexts where Alembic won't need to
            connect to the DB.
        stdout: Text stream Alembic will write status lines to. Defaults to
            `sys.stdout`; override in tests to capture output.

    Returns:
        An `alembic.config.Config` pointing to BULKPAY's migration scripts.
    """
    cfg = Config(stdout=stdout)
    if db_url is not None:
        cfg.set_main_option(ALEMBIC_URL_KEY, db_url)
    cfg.set_main_option(
        ALEMBIC_SCRIPT_LOCATION_KEY,
        str(files("bulkpay.adapters.db.alembic")),
    )
    return cfg
