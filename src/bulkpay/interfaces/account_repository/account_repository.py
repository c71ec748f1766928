"""Interface for transactional access to accounts and their transfers.

Defines the `AbstractAccountRepository` port consumed by the bulk transfer
handler. The port exposes one serializable unit of work: callers open it with
`atomic()` (closure form) or `unit_of_work()` (context-manager form) and run
lookups and writes against the *scoped* repository they receive.

Contract overview
-----------------
- `get_account`, `update_balance` and `add_transfers` are only valid on a
  scoped repository; calling them elsewhere raises `OutsideUnitOfWorkError`.
- A unit of work commits when the callback (or `with` body) completes
  normally, and rolls back when it raises. The triggering exception is
  re-raised unchanged; if the rollback itself fails, `RollbackFailedError`
  carries both exceptions.
- Write serialization is the store's job, not the caller's: once a unit of
  work is open no other unit of work may write to the same account until it
  ends.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from bulkpay.domain.model import Account, Transfer

T = TypeVar("T")


class AbstractAccountRepository(abc.ABC):
    """Account lookup, balance update and transfer insert inside one unit of work."""

    def atomic(self, callback: Callable[[AbstractAccountRepository], T]) -> T:
        """Run ``callback`` inside a unit of work.

        Args:
            callback: Receives a repository bound to the open unit of work.

        Returns:
            Whatever ``callback`` returns, after the unit of work has committed.

        Raises:
            Exception: Any exception raised by ``callback``, unchanged, after the
                unit of work has been rolled back.
            RollbackFailedError: If the rollback itself failed.
        """
        with self.unit_of_work() as scoped:
            return callback(scoped)

    @abc.abstractmethod
    def unit_of_work(self) -> AbstractContextManager[AbstractAccountRepository]:
        """Open a unit of work and yield a repository bound to it.

        Commits when the ``with`` body completes, rolls back when it raises.

        Raises:
            NestedUnitOfWorkError: If called on an already scoped repository.
            LockTimeoutError: If the write lock could not be acquired in time.
        """

    @abc.abstractmethod
    def get_account(self, iban: str, bic: str) -> Account:
        """Fetch the account matching both ``iban`` and ``bic`` exactly.

        Raises:
            AccountNotFoundError: If no account matches both fields.
            OutsideUnitOfWorkError: If called outside a unit of work.
        """

    @abc.abstractmethod
    def update_balance(self, account: Account) -> None:
        """Write ``account.balance_cents`` back to storage.

        Raises:
            StaleAccountError: If the account row no longer exists.
            OutsideUnitOfWorkError: If called outside a unit of work.
        """

    @abc.abstractmethod
    def add_transfers(self, transfers: Sequence[Transfer]) -> None:
        """Persist ``transfers`` in order as outgoing debits.

        Every transfer must already carry its ``bank_account_id``; amounts are
        positive magnitudes and are stored with a negative sign.

        Raises:
            MissingAccountIdError: If any transfer lacks an owning account id.
                Nothing is written in that case.
            OutsideUnitOfWorkError: If called outside a unit of work.
        """

