"""create bank_accounts and transactions tables

Revision ID: 4c1e2a9b7d30
Revises:
Create Date: 2026-10-17 09:12:41.503118

"""

# pylint: disable=invalid-name

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# deal with alembic stuff
# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "4c1e2a9b7d30"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "organization_name",
            sa.String(length=255),
            nullable=False,
            comment="Legal name of the organization owning the account.",
        ),
        sa.Column(
            "balance_cents",
            sa.BigInteger(),
            nullable=False,
            server_default="0",
            comment="Current balance in minor currency units.",
        ),
        sa.Column("iban", sa.String(length=34), nullable=False),
        sa.Column("bic", sa.String(length=11), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bank_accounts")),
        sa.UniqueConstraint("iban", "bic", name=op.f("uq_bank_accounts_iban_bic")),
        comment="Organization accounts debited by bulk transfers.",
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("counterparty_name", sa.String(length=255), nullable=False),
        sa.Column("counterparty_iban", sa.String(length=34), nullable=False),
        sa.Column("counterparty_bic", sa.String(length=11), nullable=False),
        sa.Column(
            "amount_cents",
            sa.BigInteger(),
            nullable=False,
            comment="Signed amount in minor units; debits are negative.",
        ),
        sa.Column(
            "amount_currency",
            sa.String(length=3),
            nullable=False,
            server_default="EUR",
        ),
        sa.Column("bank_account_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["bank_account_id"],
            ["bank_accounts.id"],
            name=op.f("fk_transactions_bank_account_id_bank_accounts"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_transactions")),
        comment="Append-only ledger of transfers. Never updated or deleted.",
    )
    op.create_index(
        op.f("ix_transactions_bank_account_id"),
        "transactions",
        ["bank_account_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index(op.f("ix_transactions_bank_account_id"), table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("bank_accounts")
