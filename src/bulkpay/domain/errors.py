"""Domain-layer error definitions."""


class DomainError(Exception):
    """Base class for domain-layer errors.

    Domain errors describe expected business outcomes. They are surfaced to
    callers unchanged and are never retried or logged as faults.
    """


class AccountNotFoundError(DomainError):
    """Raised when no account matches both the given IBAN and BIC."""

    def __init__(self, iban: str, bic: str) -> None:
        super().__init__(f"Account with IBAN '{iban}' and BIC '{bic}' not found.")
        self.iban = iban
        self.bic = bic


class InsufficientFundsError(DomainError):
    """Raised when an account balance cannot cover a requested debit."""

    def __init__(self, balance_cents: int, required_cents: int) -> None:
        super().__init__(
            f"Insufficient funds for bulk transfer: balance {balance_cents}, "
            f"required {required_cents}."
        )
        self.balance_cents = balance_cents
        self.required_cents = required_cents
