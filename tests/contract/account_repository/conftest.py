"""Repository harnesses shared by the account repository contract tests.

Each harness wraps one `AbstractAccountRepository` implementation together
with backdoor helpers to seed accounts and read committed state without
going through the port.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import pytest
from sqlalchemy.engine import Engine

from bulkpay.adapters.db.engine import make_engine
from bulkpay.adapters.in_memory import InMemoryAccountRepository, InMemoryLedger
from bulkpay.adapters.repository import SqlAlchemyAccountRepository
from bulkpay.interfaces.account_repository import AbstractAccountRepository
from tests.fixtures.datagen import ORG_BIC, ORG_IBAN
from tests.fixtures.sqlite import fetch_balance, fetch_transfer_rows, seed_account

# pylint: disable=redefined-outer-name


@dataclass
class RepositoryHarness:
    """A repository plus direct access to its committed state."""

    repository: AbstractAccountRepository
    _seed: Callable[[int, str, str], int]
    balance: Callable[[int], int]
    #: (counterparty_name, signed amount_cents) pairs in insertion order
    stored_transfers: Callable[[int], list[tuple[str, int]]]

    def seed(self, balance_cents: int, iban: str = ORG_IBAN, bic: str = ORG_BIC) -> int:
        """Open an account outside any unit of work and return its id."""
        return self._seed(balance_cents, iban, bic)


def memory_harness() -> RepositoryHarness:
    ledger = InMemoryLedger()
    return RepositoryHarness(
        repository=InMemoryAccountRepository(ledger),
        _seed=lambda balance, iban, bic: ledger.open_account("ACME Corp", iban, bic, balance).id,
        balance=lambda account_id: ledger.accounts[account_id].balance_cents,
        stored_transfers=lambda account_id: [
            (t.counterparty_name, t.amount_cents) for t in ledger.transfers_for(account_id)
        ],
    )


def sqlalchemy_harness(engine: Engine) -> RepositoryHarness:
    return RepositoryHarness(
        repository=SqlAlchemyAccountRepository(engine),
        _seed=lambda balance, iban, bic: seed_account(
            engine, balance_cents=balance, iban=iban, bic=bic
        ),
        balance=lambda account_id: fetch_balance(engine, account_id),
        stored_transfers=lambda account_id: [
            (row["counterparty_name"], row["amount_cents"])
            for row in fetch_transfer_rows(engine, account_id)
        ],
    )


@contextmanager
def open_harness(request: pytest.FixtureRequest, kind: str) -> Iterator[RepositoryHarness]:
    match kind:
        case "memory":
            yield memory_harness()
        case "sqlite_memory":
            yield sqlalchemy_harness(request.getfixturevalue("sqlite_engine_memory"))
        case "sqlite_file":
            # default settings: a long lock wait so contended tests serialize
            engine = make_engine(request.getfixturevalue("sqlite_url_file"))
            try:
                yield sqlalchemy_harness(engine)
            finally:
                engine.dispose()
        case _:
            raise ValueError(f"unknown repository type: {kind}")


@pytest.fixture(params=["memory", "sqlite_memory", "sqlite_file"])
def harness(request: pytest.FixtureRequest) -> Iterator[RepositoryHarness]:
    """Every repository implementation, one per parametrization."""
    with open_harness(request, request.param) as h:
        yield h


@pytest.fixture(params=["memory", "sqlite_file"])
def concurrent_harness(request: pytest.FixtureRequest) -> Iterator[RepositoryHarness]:
    """Implementations whose committed state is shared across threads.

    In-memory SQLite databases are private to one connection, so they are
    left out.
    """
    with open_harness(request, request.param) as h:
        yield h
