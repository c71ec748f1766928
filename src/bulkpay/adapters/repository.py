"""SQLAlchemy-backed account repository for BULKPAY.

Implements `AbstractAccountRepository` against the ``bank_accounts`` and
``transactions`` tables (see `bulkpay.adapters.db.schema`) on SQLite.

Concurrency protocol
--------------------
`unit_of_work()` checks a connection out of the engine's pool, tags it with
``sqlite_begin_mode=IMMEDIATE`` and begins. The engine's ``begin`` listener
then emits ``BEGIN IMMEDIATE``, which takes SQLite's RESERVED lock before the
first read:

- a second unit of work blocks at BEGIN (up to ``busy_timeout``) until the
  first commits or rolls back, then reads the now-current balance, so the
  read-validate-write sequence of a bulk transfer cannot interleave;
- with WAL journaling, plain readers keep seeing the last committed snapshot
  and are never blocked by the writer.

SQLite serializes writers for the whole database file, not per account.

Usage:
    ```py
    repo = SqlAlchemyAccountRepository(engine)
    with repo.unit_of_work() as scoped:
        account = scoped.get_account(iban, bic)
        ...
    ```

Exceptions:
    Maps SQLAlchemy driver errors to `LockTimeoutError` and
    `StorageUnavailableError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update
from sqlalchemy.exc import DBAPIError

from bulkpay.adapters.db.engine import BEGIN_MODE_OPTION
from bulkpay.domain.errors import AccountNotFoundError
from bulkpay.domain.model import Account, Transfer
from bulkpay.interfaces.account_repository import (
    AbstractAccountRepository,
    LockTimeoutError,
    MissingAccountIdError,
    NestedUnitOfWorkError,
    OutsideUnitOfWorkError,
    RollbackFailedError,
    StaleAccountError,
    StorageError,
    StorageUnavailableError,
    UnsupportedStoreError,
)

from .db.schema import bank_accounts, transactions

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine, RootTransaction

logger = logging.getLogger(__name__)

#: SQLITE_MAX_VARIABLE_NUMBER on builds older than 3.32.
DEFAULT_MAX_BOUND_PARAMETERS = 999

TRANSFER_COLUMNS = (
    "counterparty_name",
    "counterparty_iban",
    "counterparty_bic",
    "amount_cents",
    "amount_currency",
    "bank_account_id",
    "description",
)

# sqlite3 reports an expired busy_timeout with either message
LOCK_TIMEOUT_KEYWORDS = ("database is locked", "database is busy")  # pragma: no mutate


class SqlAlchemyAccountRepository(AbstractAccountRepository):
    """SQLite account repository with immediate write-lock acquisition.

    An instance built with only an engine is *unscoped*: it can open units of
    work but refuses lookups and writes. The instance yielded by
    `unit_of_work()` is *scoped* to one connection and transaction.

    Args:
        engine: Engine built with `bulkpay.adapters.db.engine.make_engine`.
        max_bound_parameters: Upper bound of bound parameters per INSERT;
            determines the transfer batch size.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        max_bound_parameters: int = DEFAULT_MAX_BOUND_PARAMETERS,
        _connection: Connection | None = None,
    ):
        if engine.dialect.name != "sqlite":
            raise UnsupportedStoreError(
                f"Unsupported store {engine.dialect.name!r}: "
                "immediate write locking requires SQLite."
            )
        if max_bound_parameters < len(TRANSFER_COLUMNS):
            raise ValueError(
                f"max_bound_parameters must be >= {len(TRANSFER_COLUMNS)}, "
                f"got {max_bound_parameters}"
            )
        self.engine = engine
        self.max_bound_parameters = max_bound_parameters
        self._connection = _connection

    @property
    def batch_size(self) -> int:
        """Number of transfers inserted per statement."""
        return self.max_bound_parameters // len(TRANSFER_COLUMNS)

    # --------------------------------------------------------------------- #
    # Unit of work
    # --------------------------------------------------------------------- #

    @contextmanager
    def unit_of_work(self) -> Iterator[SqlAlchemyAccountRepository]:
        if self._connection is not None:
            raise NestedUnitOfWorkError()

        try:
            connection = self.engine.connect()
        except DBAPIError as e:
            raise _translate_dbapi_error(e, "failed to connect") from e

        with connection:
            connection.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
            try:
                transaction = connection.begin()
            except DBAPIError as e:
                raise _translate_dbapi_error(e, "failed to begin transaction") from e
            logger.debug("Unit of work started (BEGIN IMMEDIATE)")

            scoped = SqlAlchemyAccountRepository(
                self.engine,
                max_bound_parameters=self.max_bound_parameters,
                _connection=connection,
            )
            try:
                yield scoped
            except BaseException as exc:
                self._rollback(transaction, exc)
                raise
            finally:
                scoped._connection = None

            try:
                transaction.commit()
            except DBAPIError as e:
                raise _translate_dbapi_error(e, "failed to commit transaction") from e
            logger.debug("Unit of work committed")

    @staticmethod
    def _rollback(transaction: RootTransaction, exc: BaseException) -> None:
        logger.debug("Rolling back unit of work after %s", type(exc).__name__)
        try:
            transaction.rollback()
        except Exception as rollback_error:  # pylint: disable=broad-except
            raise RollbackFailedError(exc, rollback_error) from exc

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def get_account(self, iban: str, bic: str) -> Account:
        connection = self._require_connection("get_account")
        stmt = select(
            bank_accounts.c.id,
            bank_accounts.c.organization_name,
            bank_accounts.c.balance_cents,
            bank_accounts.c.iban,
            bank_accounts.c.bic,
        ).where(bank_accounts.c.iban == iban, bank_accounts.c.bic == bic)

        try:
            row = connection.execute(stmt).mappings().one_or_none()
        except DBAPIError as e:
            raise _translate_dbapi_error(e, "failed to get account") from e

        if row is None:
            raise AccountNotFoundError(iban, bic)
        return Account(**row)

    def update_balance(self, account: Account) -> None:
        connection = self._require_connection("update_balance")
        stmt = (
            update(bank_accounts)
            .where(bank_accounts.c.id == account.id)
            .values(balance_cents=account.balance_cents)
        )

        try:
            result = connection.execute(stmt)
        except DBAPIError as e:
            raise _translate_dbapi_error(e, "failed to update balance") from e

        if result.rowcount == 0:
            raise StaleAccountError(account.id)

    def add_transfers(self, transfers: Sequence[Transfer]) -> None:
        connection = self._require_connection("add_transfers")

        # Validate everything up front so a bad transfer never leaves a
        # partially inserted batch behind.
        rows = [self._as_row(position, t) for position, t in enumerate(transfers)]

        size = self.batch_size
        for start in range(0, len(rows), size):
            batch = rows[start : start + size]
            try:
                connection.execute(insert(transactions).values(batch))
            except DBAPIError as e:
                raise _translate_dbapi_error(e, "failed to bulk insert transfers") from e
            logger.debug(
                "Inserted transfers %d-%d of %d", start + 1, start + len(batch), len(rows)
            )

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _require_connection(self, operation: str) -> Connection:
        if self._connection is None:
            raise OutsideUnitOfWorkError(operation)
        return self._connection

    @staticmethod
    def _as_row(position: int, transfer: Transfer) -> dict[str, Any]:
        """Build an insertable row, storing the outgoing amount as a debit."""
        if transfer.bank_account_id is None:
            raise MissingAccountIdError(position)
        return {
            "counterparty_name": transfer.counterparty_name,
            "counterparty_iban": transfer.counterparty_iban,
            "counterparty_bic": transfer.counterparty_bic,
            "amount_cents": -transfer.amount_cents,
            "amount_currency": transfer.currency,
            "bank_account_id": transfer.bank_account_id,
            "description": transfer.description,
        }


def _translate_dbapi_error(error: DBAPIError, context: str) -> StorageError:
    """Map a SQLAlchemy DBAPIError onto the repository's storage faults."""
    msg = str(error.orig) if error.orig is not None else str(error)
    if any(keyword in msg.lower() for keyword in LOCK_TIMEOUT_KEYWORDS):
        return LockTimeoutError(f"{context}: {msg}")
    return StorageUnavailableError(f"{context}: {msg}")
