"""Database engine factory and helpers.

This module centralizes creation of SQLAlchemy Engines and applies the SQLite
tuning the bulk transfer engine relies on:

- **PRAGMAs on connect**: ``busy_timeout`` (bounded lock wait), foreign keys,
  WAL journaling (readers see the last committed snapshot while a writer
  holds the lock), ``synchronous=NORMAL`` and in-memory temp storage.
- **Explicit BEGIN**: pysqlite's implicit transaction handling is disabled and
  every transaction is opened by a ``begin`` listener that emits
  ``BEGIN <mode>``. The mode comes from the connection's
  ``sqlite_begin_mode`` execution option and defaults to ``DEFERRED``; the
  account repository asks for ``IMMEDIATE`` so the write lock is taken at
  transaction start instead of at the first write.

Use this module whenever you need an Engine so that all connections are
consistently configured.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url

from bulkpay.config import StorageSettings

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Connection, Engine

SQLITE_NAMES = {"sqlite", "sqlite+pysqlite"}
MEMORY_DATABASES = {None, "", ":memory:"}

BEGIN_MODE_OPTION = "sqlite_begin_mode"
DEFAULT_BEGIN_MODE = "DEFERRED"
BEGIN_MODES = frozenset({"DEFERRED", "IMMEDIATE", "EXCLUSIVE"})


def is_sqlite(url: str | URL) -> bool:
    """Return True if the given SQLAlchemy URL or string corresponds to SQLite.

    Args:
        url: A database URL string or SQLAlchemy :class:`URL`.

    Returns:
        bool: True if the backend is SQLite, otherwise False.
    """
    u = make_url(str(url))
    return u.get_backend_name() in SQLITE_NAMES


def is_memory_database(url: str | URL) -> bool:
    """Return True if ``url`` points at a private in-memory SQLite database."""
    u = make_url(str(url))
    return is_sqlite(u) and u.database in MEMORY_DATABASES


def make_engine(
    url: str | URL, *, echo: bool = False, settings: StorageSettings | None = None
) -> Engine:
    """Create a SQLAlchemy Engine for the given URL.

    For file-backed databases the connection pool is sized from ``settings``.
    If the backend is SQLite, the PRAGMAs and BEGIN handling described in the
    module docstring are installed.

    Args:
        url: Database connection URL (str or :class:`URL`).
        echo: If True, log SQL statements.
        settings: Pool and lock tuning; defaults to `StorageSettings()`.

    Returns:
        Engine: Configured SQLAlchemy Engine.
    """
    settings = settings or StorageSettings()

    pool_options: dict[str, Any] = {}
    if not is_memory_database(url):
        pool_options = {
            "pool_size": settings.pool_size,
            "max_overflow": settings.max_overflow,
            "pool_recycle": settings.pool_recycle_s,
        }

    engine = create_engine(url, echo=echo, future=True, **pool_options)

    if is_sqlite(url):
        _install_sqlite_hooks(engine, settings)

    return engine


def _install_sqlite_hooks(engine: Engine, settings: StorageSettings) -> None:
    busy_timeout_ms = int(settings.busy_timeout_ms)
    enable_wal = settings.enable_wal

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_conn: SQLiteConnection, conn_record):  # type: ignore #pylint: disable=W0613
        # BEGIN is emitted by _sqlite_begin below, never by the driver
        dbapi_conn.isolation_level = None
        cur = dbapi_conn.cursor()
        cur.execute(f"PRAGMA busy_timeout={busy_timeout_ms};")
        cur.execute("PRAGMA foreign_keys=ON;")
        if enable_wal:
            cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA synchronous=NORMAL;")
        cur.execute("PRAGMA temp_store=MEMORY;")
        cur.close()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, DEFAULT_BEGIN_MODE)
        if mode not in BEGIN_MODES:
            raise ValueError(f"Unsupported SQLite begin mode: {mode!r}")
        conn.exec_driver_sql(f"BEGIN {mode}")
