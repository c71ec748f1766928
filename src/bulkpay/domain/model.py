"""Accounts, transfers and bulk transfers.

All monetary amounts are integers in minor currency units (cents). Inside the
domain a transfer amount is always a positive magnitude of money leaving the
account; the accounting sign is applied by the storage adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .errors import InsufficientFundsError


@dataclass
class Account:
    """An organization bank account.

    Mutable: a bulk transfer debits the balance in place before it is written
    back by the repository.
    """

    id: int
    organization_name: str
    balance_cents: int
    iban: str
    bic: str

    def has_sufficient_funds(self, required_cents: int) -> bool:
        """Return True if the balance covers ``required_cents``."""
        return self.balance_cents >= required_cents

    def debit(self, amount_cents: int) -> None:
        """Subtract ``amount_cents`` from the balance.

        Args:
            amount_cents: Non-negative amount to debit, in minor units.

        Raises:
            ValueError: If ``amount_cents`` is negative.
            InsufficientFundsError: If the balance does not cover the amount.
                The balance is left unchanged.
        """
        if amount_cents < 0:
            raise ValueError(f"debit amount must be >= 0, got {amount_cents}")
        if not self.has_sufficient_funds(amount_cents):
            raise InsufficientFundsError(self.balance_cents, amount_cents)
        self.balance_cents -= amount_cents


@dataclass(frozen=True)
class Transfer:
    """A single outgoing credit transfer.

    ``id`` is assigned by storage and ``bank_account_id`` is stamped by the
    orchestrator once the owning account has been resolved.
    """

    counterparty_name: str
    counterparty_iban: str
    counterparty_bic: str
    amount_cents: int
    currency: str
    description: str
    bank_account_id: int | None = None
    id: int | None = None

    def for_account(self, account_id: int) -> Transfer:
        """Return a copy of this transfer owned by ``account_id``."""
        return replace(self, bank_account_id=account_id)


@dataclass(frozen=True)
class BulkTransfer:
    """A request-scoped batch of transfers debited from one organization account."""

    organization_iban: str
    organization_bic: str
    transfers: tuple[Transfer, ...] = field(default_factory=tuple)

    def total_amount(self) -> int:
        """Sum of all transfer magnitudes (0 for an empty batch)."""
        return sum(transfer.amount_cents for transfer in self.transfers)
