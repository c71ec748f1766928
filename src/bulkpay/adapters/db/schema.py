"""Account and transfer schema.

Defines the two tables BULKPAY persists to, attached to a shared ``metadata``
whose naming convention gives every constraint and index a deterministic name
(so Alembic autogenerate does not emit spurious drops/adds).

Naming convention:
    - Indexes:       ix_<table>_<col...>
    - Unique:        uq_<table>_<col...>
    - Foreign keys:  fk_<table>_<col...>_<reftable>
    - Primary key:   pk_<table>

Sign convention: ``transactions.amount_cents`` is stored signed; outgoing
debits written by the bulk transfer engine are negative.

| Constraint                           | Purpose                           |
|--------------------------------------|-----------------------------------|
| UNIQUE(bank_accounts.iban, bic)      | one account per (IBAN, BIC) pair  |
| FK transactions.bank_account_id      | every transfer has an owner       |
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

__all__ = ["metadata", "bank_accounts", "transactions"]

#: All BULKPAY tables must attach to this metadata object.
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_N_label)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

bank_accounts = Table(
    "bank_accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "organization_name",
        String(255),
        nullable=False,
        comment="Legal name of the organization owning the account.",
    ),
    Column(
        "balance_cents",
        BigInteger,
        nullable=False,
        server_default="0",
        comment="Current balance in minor currency units.",
    ),
    Column("iban", String(34), nullable=False),
    Column("bic", String(11), nullable=False),
    UniqueConstraint("iban", "bic"),
    comment="Organization accounts debited by bulk transfers.",
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("counterparty_name", String(255), nullable=False),
    Column("counterparty_iban", String(34), nullable=False),
    Column("counterparty_bic", String(11), nullable=False),
    Column(
        "amount_cents",
        BigInteger,
        nullable=False,
        comment="Signed amount in minor units; debits are negative.",
    ),
    Column("amount_currency", String(3), nullable=False, server_default="EUR"),
    Column(
        "bank_account_id",
        Integer,
        ForeignKey("bank_accounts.id"),
        nullable=False,
    ),
    Column("description", Text, nullable=True),
    Index(None, "bank_account_id"),
    comment="Append-only ledger of transfers. Never updated or deleted.",
)
