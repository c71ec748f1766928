"""Integration tests for `SqlAlchemyAccountRepository` on SQLite files.

Covers what the contract tests cannot see through the port: statement
batching, driver error translation, lock timeouts, rollback failures and
reader isolation under WAL.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy import event
from sqlalchemy.engine import Engine, RootTransaction

from bulkpay.adapters.db.engine import BEGIN_MODE_OPTION, make_engine
from bulkpay.adapters.repository import (
    DEFAULT_MAX_BOUND_PARAMETERS,
    TRANSFER_COLUMNS,
    SqlAlchemyAccountRepository,
)
from bulkpay.config import StorageSettings
from bulkpay.domain.model import BulkTransfer, Transfer
from bulkpay.interfaces.account_repository import (
    LockTimeoutError,
    RollbackFailedError,
    StorageUnavailableError,
    UnsupportedStoreError,
)
from bulkpay.service_layer import commands, handlers
from tests.fixtures.datagen import ORG_BIC, ORG_IBAN, make_bulk_transfer, make_transfer
from tests.fixtures.sqlite import fetch_balance, fetch_transfer_rows, seed_account

# pylint: disable=redefined-outer-name, magic-value-comparison


class Boom(Exception):
    """Raised inside units of work to force a rollback."""


@pytest.fixture
def count_transfer_inserts(sqlite_engine_file: Engine) -> list[int]:
    """Record the number of parameters of every INSERT INTO transactions."""
    sizes: list[int] = []

    @event.listens_for(sqlite_engine_file, "before_cursor_execute")
    def _count(conn, cursor, statement, parameters, context, executemany):  # pylint: disable=unused-argument,too-many-arguments,too-many-positional-arguments
        if statement.lstrip().upper().startswith("INSERT INTO TRANSACTIONS"):
            sizes.append(len(parameters))

    return sizes


def process(repository, bulk_transfer) -> None:
    handlers.process_bulk_transfer(
        commands.ProcessBulkTransfer(bulk_transfer), repository=repository
    )


# ============================================================================
#                              Construction
# ============================================================================


def test_rejects_non_sqlite_engines():
    """Row-level-locking stores are not supported."""
    fake_engine = SimpleNamespace(dialect=SimpleNamespace(name="postgresql"))
    with pytest.raises(UnsupportedStoreError, match="postgresql"):
        SqlAlchemyAccountRepository(fake_engine)  # type: ignore[arg-type]


def test_rejects_bound_parameter_limit_below_one_row(sqlite_engine_memory: Engine):
    """The limit must fit at least one row."""
    with pytest.raises(ValueError, match="max_bound_parameters"):
        SqlAlchemyAccountRepository(sqlite_engine_memory, max_bound_parameters=6)


def test_default_batch_size(sqlite_engine_memory: Engine):
    """999 bound parameters over 7 columns gives 142 rows per INSERT."""
    repo = SqlAlchemyAccountRepository(sqlite_engine_memory)
    assert DEFAULT_MAX_BOUND_PARAMETERS == 999
    assert len(TRANSFER_COLUMNS) == 7
    assert repo.batch_size == 142


# ============================================================================
#                                Batching
# ============================================================================


def test_large_batch_is_split_and_keeps_order(
    sqlite_engine_file: Engine, count_transfer_inserts: list[int]
):
    """300 transfers go out as 142 + 142 + 16 rows, in input order."""
    account_id = seed_account(sqlite_engine_file, balance_cents=10**9)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file)
    bulk = make_bulk_transfer(*range(1, 301))

    process(repo, bulk)

    assert count_transfer_inserts == [142 * 7, 142 * 7, 16 * 7]
    rows = fetch_transfer_rows(sqlite_engine_file, account_id)
    assert [row["amount_cents"] for row in rows] == [-a for a in range(1, 301)]
    assert [row["counterparty_name"] for row in rows] == [
        t.counterparty_name for t in bulk.transfers
    ]
    assert fetch_balance(sqlite_engine_file, account_id) == 10**9 - sum(range(1, 301))


def test_small_parameter_limit_batches(
    sqlite_engine_file: Engine, count_transfer_inserts: list[int]
):
    """A 14-parameter limit inserts two rows per statement."""
    account_id = seed_account(sqlite_engine_file, balance_cents=1_000)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file, max_bound_parameters=14)

    process(repo, make_bulk_transfer(1, 2, 3, 4, 5))

    assert count_transfer_inserts == [14, 14, 7]
    rows = fetch_transfer_rows(sqlite_engine_file, account_id)
    assert [row["amount_cents"] for row in rows] == [-1, -2, -3, -4, -5]


def test_stored_rows_carry_all_fields(sqlite_engine_file: Engine):
    """Every transfer column is persisted as given, with the amount negated."""
    account_id = seed_account(sqlite_engine_file, balance_cents=1_000_000)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file)
    transfer = Transfer(
        counterparty_name="Bip Bip",
        counterparty_iban="EE383680981021245685",
        counterparty_bic="CRLYFRPPTOU",
        amount_cents=1450,
        currency="EUR",
        description="Wonderland/4410",
    )

    repo.atomic(lambda scoped: scoped.add_transfers([transfer.for_account(account_id)]))

    [row] = fetch_transfer_rows(sqlite_engine_file, account_id)
    assert row["id"] is not None
    assert {k: v for k, v in row.items() if k != "id"} == {
        "counterparty_name": "Bip Bip",
        "counterparty_iban": "EE383680981021245685",
        "counterparty_bic": "CRLYFRPPTOU",
        "amount_cents": -1450,
        "amount_currency": "EUR",
        "bank_account_id": account_id,
        "description": "Wonderland/4410",
    }


def test_failure_in_a_later_batch_rolls_back_earlier_batches(sqlite_engine_file: Engine):
    """A constraint violation in the last INSERT undoes the debit and prior INSERTs."""
    account_id = seed_account(sqlite_engine_file, balance_cents=1_000)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file, max_bound_parameters=14)
    transfers = [make_transfer(a) for a in (1, 2, 3, 4)]
    transfers.append(make_transfer(5, counterparty_name=None))
    bulk = BulkTransfer(ORG_IBAN, ORG_BIC, tuple(transfers))

    with pytest.raises(StorageUnavailableError, match="failed to bulk insert transfers"):
        process(repo, bulk)

    assert fetch_balance(sqlite_engine_file, account_id) == 1_000
    assert not fetch_transfer_rows(sqlite_engine_file, account_id)


# ============================================================================
#                        Locks, errors and isolation
# ============================================================================


def test_lock_wait_expiry_is_a_lock_timeout(sqlite_engine_file: Engine):
    """While another writer holds the lock, opening a unit of work times out."""
    seed_account(sqlite_engine_file, balance_cents=1_000)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file)

    with sqlite_engine_file.connect() as holder:
        holder.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
        with holder.begin():
            with pytest.raises(LockTimeoutError, match="failed to begin transaction"):
                repo.atomic(lambda scoped: scoped.get_account(ORG_IBAN, ORG_BIC))


def test_missing_schema_is_storage_unavailable(tmp_path: Path):
    """Driver errors other than lock waits surface as StorageUnavailableError."""
    engine = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    try:
        repo = SqlAlchemyAccountRepository(engine)
        with pytest.raises(StorageUnavailableError, match="no such table"):
            repo.atomic(lambda scoped: scoped.get_account(ORG_IBAN, ORG_BIC))
    finally:
        engine.dispose()


def test_unopenable_store_is_storage_unavailable(tmp_path: Path):
    """A database file in a missing directory fails on connect, as a storage fault."""
    engine = make_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'bulkpay.db'}")
    try:
        repo = SqlAlchemyAccountRepository(engine)
        with pytest.raises(StorageUnavailableError, match="failed to connect"):
            repo.atomic(lambda scoped: scoped.get_account(ORG_IBAN, ORG_BIC))
    finally:
        engine.dispose()


def test_readers_see_last_commit_while_writer_is_open(sqlite_engine_file: Engine):
    """An open unit of work does not block readers, who see committed state only."""
    account_id = seed_account(sqlite_engine_file, balance_cents=1_000)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file)

    with repo.unit_of_work() as scoped:
        account = scoped.get_account(ORG_IBAN, ORG_BIC)
        account.debit(600)
        scoped.update_balance(account)
        assert fetch_balance(sqlite_engine_file, account_id) == 1_000

    assert fetch_balance(sqlite_engine_file, account_id) == 400


def test_rollback_failure_carries_both_errors(sqlite_engine_file: Engine, monkeypatch):
    """If rollback fails too, both exceptions are reported."""
    seed_account(sqlite_engine_file, balance_cents=1_000)
    repo = SqlAlchemyAccountRepository(sqlite_engine_file)
    original = Boom("callback failed")
    rollback_error = RuntimeError("rollback failed")

    def broken_rollback(self):  # pylint: disable=unused-argument
        raise rollback_error

    def fail(scoped):
        scoped.get_account(ORG_IBAN, ORG_BIC)
        raise original

    monkeypatch.setattr(RootTransaction, "rollback", broken_rollback)

    with pytest.raises(RollbackFailedError) as exc_info:
        repo.atomic(fail)

    assert exc_info.value.original is original
    assert exc_info.value.rollback_error is rollback_error
    assert exc_info.value.__cause__ is original


def test_settings_bound_the_lock_wait(sqlite_url_file: str):
    """busy_timeout from the settings governs how long BEGIN waits."""
    engine = make_engine(sqlite_url_file, settings=StorageSettings(busy_timeout_ms=50))
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == 50
    finally:
        engine.dispose()
