"""Account administration queries.

Opening accounts and reading account summaries sit outside the bulk transfer
path: they never go through the account repository and never ask for
``BEGIN IMMEDIATE``. Reads therefore see the last committed snapshot and do
not wait on a running bulk transfer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError

from .db.schema import bank_accounts, transactions

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class DuplicateAccountError(Exception):
    """Raised when an account with the same IBAN and BIC already exists."""

    def __init__(self, iban: str, bic: str) -> None:
        super().__init__(f"An account with IBAN '{iban}' and BIC '{bic}' already exists.")
        self.iban = iban
        self.bic = bic


@dataclass(frozen=True)
class AccountSummary:
    """Read model of an account and the transfers recorded against it."""

    id: int
    organization_name: str
    iban: str
    bic: str
    balance_cents: int
    transfer_count: int
    debited_cents: int


def open_account(
    engine: Engine, *, organization_name: str, iban: str, bic: str, balance_cents: int
) -> int:
    """Insert a new account and return its id.

    Raises:
        ValueError: If ``balance_cents`` is negative.
        DuplicateAccountError: If the (IBAN, BIC) pair is already taken.
    """
    if balance_cents < 0:
        raise ValueError(f"balance_cents must be non-negative, got {balance_cents}")

    stmt = insert(bank_accounts).values(
        organization_name=organization_name,
        iban=iban,
        bic=bic,
        balance_cents=balance_cents,
    )
    try:
        with engine.begin() as conn:
            result = conn.execute(stmt)
            return result.inserted_primary_key[0]
    except IntegrityError as e:
        raise DuplicateAccountError(iban, bic) from e


def get_account_summary(engine: Engine, iban: str, bic: str) -> AccountSummary | None:
    """Return the summary for (``iban``, ``bic``), or None when there is no match."""
    stmt = (
        select(
            bank_accounts.c.id,
            bank_accounts.c.organization_name,
            bank_accounts.c.iban,
            bank_accounts.c.bic,
            bank_accounts.c.balance_cents,
            func.count(transactions.c.id).label("transfer_count"),
            # stored amounts are negative
            func.coalesce(-func.sum(transactions.c.amount_cents), 0).label(
                "debited_cents"
            ),
        )
        .select_from(
            bank_accounts.outerjoin(
                transactions, transactions.c.bank_account_id == bank_accounts.c.id
            )
        )
        .where(bank_accounts.c.iban == iban, bank_accounts.c.bic == bic)
        .group_by(bank_accounts.c.id)
    )
    with engine.connect() as conn:
        row = conn.execute(stmt).mappings().one_or_none()
    return AccountSummary(**row) if row is not None else None
