"""Unit tests for the database engine helpers.

These tests cover:
- Detection of SQLite and in-memory URLs.
- Pool sizing from `StorageSettings`.
- Application of SQLite PRAGMAs on connect.
- The BEGIN mode chosen through the ``sqlite_begin_mode`` execution option.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError

from bulkpay.adapters.db.engine import (
    BEGIN_MODE_OPTION,
    is_memory_database,
    is_sqlite,
    make_engine,
)
from bulkpay.config import StorageSettings

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

# pylint: disable=magic-value-comparison


def test_is_sqlite_true_for_sqlite_url():
    """is_sqlite() should return True for SQLite URLs."""
    assert is_sqlite("sqlite:///:memory:")
    assert is_sqlite(make_url("sqlite+pysqlite:///file.db"))


def test_is_sqlite_false_for_postgres_url():
    """is_sqlite() should return False for non-SQLite URLs."""
    assert not is_sqlite("postgresql://u:p@localhost/db")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite://", True),
        ("sqlite:///:memory:", True),
        ("sqlite+pysqlite:///payments.db", False),
        ("postgresql://u:p@localhost/db", False),
    ],
)
def test_is_memory_database(url: str, expected: bool):
    """Only private in-memory SQLite databases count as memory databases."""
    assert is_memory_database(url) is expected


def test_file_engine_pool_is_sized_from_settings(tmp_path: Path):
    """File databases get a pool sized from the settings."""
    settings = StorageSettings(pool_size=3, max_overflow=4)
    engine = make_engine(f"sqlite:///{tmp_path / 'pool.db'}", settings=settings)
    try:
        assert engine.pool.size() == 3  # type: ignore[attr-defined]
    finally:
        engine.dispose()


def test_memory_engine_ignores_pool_settings():
    """In-memory engines keep SQLAlchemy's default pool."""
    engine = make_engine("sqlite:///:memory:", settings=StorageSettings(max_overflow=1))
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("SELECT 1").scalar() == 1
    finally:
        engine.dispose()


def test_sqlite_pragmas_applied(sqlite_engine_file: Engine):
    """SQLite engines created by make_engine() should apply expected PRAGMAs."""
    with sqlite_engine_file.connect() as cxn:
        fk = cxn.exec_driver_sql("PRAGMA foreign_keys;").scalar()
        jm = cxn.exec_driver_sql("PRAGMA journal_mode;").scalar()
        sync = cxn.exec_driver_sql("PRAGMA synchronous;").scalar()
        tmp = cxn.exec_driver_sql("PRAGMA temp_store;").scalar()
        busy = cxn.exec_driver_sql("PRAGMA busy_timeout;").scalar()
    assert fk == 1
    assert jm.lower() == "wal"
    assert sync == 1  # NORMAL
    assert tmp == 2  # MEMORY
    assert busy == 200  # FAST_LOCK_SETTINGS


def test_wal_can_be_disabled(tmp_path: Path):
    """With enable_wal=False the default rollback journal is kept."""
    engine = make_engine(
        f"sqlite:///{tmp_path / 'nowal.db'}", settings=StorageSettings(enable_wal=False)
    )
    try:
        with engine.connect() as cxn:
            jm = cxn.exec_driver_sql("PRAGMA journal_mode;").scalar()
        assert jm.lower() == "delete"
    finally:
        engine.dispose()


def test_immediate_begin_takes_write_lock(sqlite_engine_file: Engine):
    """A second IMMEDIATE transaction cannot start while one is open."""
    with sqlite_engine_file.connect() as first, sqlite_engine_file.connect() as second:
        first.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
        second.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
        with first.begin():
            with pytest.raises(OperationalError, match="database is locked"):
                second.begin()


def test_deferred_begin_is_the_default(sqlite_engine_file: Engine):
    """Ordinary transactions begin DEFERRED and can read next to a writer."""
    with sqlite_engine_file.connect() as writer, sqlite_engine_file.connect() as reader:
        writer.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
        with writer.begin():
            with reader.begin():
                count = reader.exec_driver_sql("SELECT count(*) FROM bank_accounts").scalar()
            assert count == 0


def test_unknown_begin_mode_is_rejected(sqlite_engine_memory: Engine):
    """Only DEFERRED, IMMEDIATE and EXCLUSIVE are accepted."""
    with sqlite_engine_memory.connect() as conn:
        conn.execution_options(**{BEGIN_MODE_OPTION: "LATER"})
        with pytest.raises(ValueError, match="Unsupported SQLite begin mode"):
            conn.begin()
