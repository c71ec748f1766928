"""Bulk transfer request models - validation at the boundary.

Requests arrive as JSON documents with amounts written as decimal strings
(``"14.5"``). They are validated here with pydantic and converted to the
domain `BulkTransfer`, whose amounts are integer cents. Nothing past this
module ever sees a decimal amount.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bulkpay.domain.model import BulkTransfer, Transfer

SUPPORTED_CURRENCY = "EUR"
CENTS_PER_UNIT = 100
MAX_FRACTION_DIGITS = 2


class InvalidAmountError(ValueError):
    """Raised when a decimal amount string cannot be converted to cents."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"Invalid amount {text!r}: {reason}.")
        self.text = text


def parse_amount_to_cents(text: str) -> int:
    """Convert a decimal amount string such as ``"14.5"`` to integer cents.

    Surrounding whitespace is ignored. Amounts with more than two fractional
    digits are rejected rather than rounded, so a request can never move a
    different sum than the one it spells out.

    Raises:
        InvalidAmountError: If the text is empty, malformed, not finite,
            negative, or has more than two fractional digits.
    """
    stripped = text.strip()
    if not stripped:
        raise InvalidAmountError(text, "empty")
    try:
        amount = Decimal(stripped)
    except InvalidOperation as e:
        raise InvalidAmountError(text, "not a decimal number") from e
    if not amount.is_finite():
        raise InvalidAmountError(text, "not a finite number")
    if amount < 0:
        raise InvalidAmountError(text, "negative")

    exponent = amount.normalize().as_tuple().exponent
    if isinstance(exponent, int) and exponent < -MAX_FRACTION_DIGITS:
        raise InvalidAmountError(
            text, f"more than {MAX_FRACTION_DIGITS} fractional digits"
        )
    return int(amount * CENTS_PER_UNIT)


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty or whitespace")
    return value


class CreditTransferRequest(BaseModel):
    """One outgoing credit transfer, as submitted."""

    model_config = ConfigDict(extra="ignore")

    amount: str
    currency: str
    counterparty_name: str
    counterparty_bic: str
    counterparty_iban: str
    description: str

    @field_validator(
        "counterparty_name", "counterparty_bic", "counterparty_iban", "description"
    )
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v: str) -> str:
        if v.strip().upper() != SUPPORTED_CURRENCY:
            raise ValueError(f"only {SUPPORTED_CURRENCY} is supported")
        return SUPPORTED_CURRENCY

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: str) -> str:
        if parse_amount_to_cents(v) <= 0:
            raise ValueError("amount must be greater than zero")
        return v.strip()

    def to_domain(self) -> Transfer:
        """Build the pending (unstamped) domain transfer."""
        return Transfer(
            counterparty_name=self.counterparty_name,
            counterparty_iban=self.counterparty_iban,
            counterparty_bic=self.counterparty_bic,
            amount_cents=parse_amount_to_cents(self.amount),
            currency=self.currency,
            description=self.description,
        )


class BulkTransferRequest(BaseModel):
    """A bulk transfer request for one organization account."""

    model_config = ConfigDict(extra="ignore")

    organization_name: str | None = None
    organization_bic: str
    organization_iban: str
    credit_transfers: list[CreditTransferRequest] = Field(min_length=1)

    @field_validator("organization_bic", "organization_iban")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)

    def to_domain(self) -> BulkTransfer:
        """Convert to a `BulkTransfer`, keeping the submitted transfer order."""
        return BulkTransfer(
            organization_iban=self.organization_iban,
            organization_bic=self.organization_bic,
            transfers=tuple(t.to_domain() for t in self.credit_transfers),
        )
