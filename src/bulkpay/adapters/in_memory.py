"""In-memory account repository.

A process-local stand-in for `SqlAlchemyAccountRepository` used by unit and
contract tests. It honours the same contract:

- opening a unit of work takes a lock up front, so concurrent units of work
  are serialized exactly like ``BEGIN IMMEDIATE`` serializes them on SQLite;
- state is snapshotted when the unit of work opens and restored on rollback;
- scoped operations refuse to run outside a unit of work.

Storage-assigned ids are sequential integers starting at 1. Stored transfers
carry the signed (negative) amount, as the SQL adapter stores them.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

from bulkpay.domain.errors import AccountNotFoundError
from bulkpay.domain.model import Account, Transfer
from bulkpay.interfaces.account_repository import (
    AbstractAccountRepository,
    LockTimeoutError,
    MissingAccountIdError,
    NestedUnitOfWorkError,
    OutsideUnitOfWorkError,
    StaleAccountError,
)


@dataclass
class InMemoryLedger:
    """Committed state shared by every repository built on it."""

    accounts: dict[int, Account] = field(default_factory=dict)
    transfers: list[Transfer] = field(default_factory=list)
    next_account_id: int = 1
    next_transfer_id: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def open_account(
        self, organization_name: str, iban: str, bic: str, balance_cents: int
    ) -> Account:
        """Insert an account directly (outside any unit of work) and return it."""
        account = Account(
            id=self.next_account_id,
            organization_name=organization_name,
            balance_cents=balance_cents,
            iban=iban,
            bic=bic,
        )
        self.accounts[account.id] = account
        self.next_account_id += 1
        return replace(account)

    def transfers_for(self, account_id: int) -> list[Transfer]:
        """Stored transfers owned by ``account_id``, in insertion order."""
        return [t for t in self.transfers if t.bank_account_id == account_id]


class InMemoryAccountRepository(AbstractAccountRepository):
    """Account repository over an `InMemoryLedger`.

    Args:
        ledger: Shared state; a fresh ledger is created when omitted.
        lock_timeout_s: How long to wait for the ledger lock before raising
            `LockTimeoutError`; ``None`` waits forever.
    """

    def __init__(
        self,
        ledger: InMemoryLedger | None = None,
        *,
        lock_timeout_s: float | None = None,
        _scoped: bool = False,
    ):
        self.ledger = ledger if ledger is not None else InMemoryLedger()
        self.lock_timeout_s = lock_timeout_s
        self._scoped = _scoped

    @contextmanager
    def unit_of_work(self) -> Iterator[InMemoryAccountRepository]:
        if self._scoped:
            raise NestedUnitOfWorkError()

        timeout = -1 if self.lock_timeout_s is None else self.lock_timeout_s
        if not self.ledger.lock.acquire(timeout=timeout):
            raise LockTimeoutError("failed to begin transaction: ledger is locked")

        try:
            snapshot = self._snapshot()
            scoped = InMemoryAccountRepository(self.ledger, _scoped=True)
            try:
                yield scoped
            except BaseException:
                self._restore(snapshot)
                raise
            finally:
                scoped._scoped = False
        finally:
            self.ledger.lock.release()

    def get_account(self, iban: str, bic: str) -> Account:
        self._require_scope("get_account")
        for account in self.ledger.accounts.values():
            if account.iban == iban and account.bic == bic:
                return replace(account)
        raise AccountNotFoundError(iban, bic)

    def update_balance(self, account: Account) -> None:
        self._require_scope("update_balance")
        if (stored := self.ledger.accounts.get(account.id)) is None:
            raise StaleAccountError(account.id)
        stored.balance_cents = account.balance_cents

    def add_transfers(self, transfers: Sequence[Transfer]) -> None:
        self._require_scope("add_transfers")
        for position, transfer in enumerate(transfers):
            if transfer.bank_account_id is None:
                raise MissingAccountIdError(position)

        for transfer in transfers:
            self.ledger.transfers.append(
                replace(
                    transfer,
                    id=self.ledger.next_transfer_id,
                    amount_cents=-transfer.amount_cents,
                )
            )
            self.ledger.next_transfer_id += 1

    # --- internals ---

    def _require_scope(self, operation: str) -> None:
        if not self._scoped:
            raise OutsideUnitOfWorkError(operation)

    def _snapshot(self) -> tuple[dict[int, Account], list[Transfer], int, int]:
        return (
            {account_id: replace(a) for account_id, a in self.ledger.accounts.items()},
            list(self.ledger.transfers),
            self.ledger.next_account_id,
            self.ledger.next_transfer_id,
        )

    def _restore(
        self, snapshot: tuple[dict[int, Account], list[Transfer], int, int]
    ) -> None:
        (
            self.ledger.accounts,
            self.ledger.transfers,
            self.ledger.next_account_id,
            self.ledger.next_transfer_id,
        ) = snapshot
