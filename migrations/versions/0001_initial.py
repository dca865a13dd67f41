"""Initial ledger schema: accounts, transactions, balance deltas.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

TRANSACTION_TYPES = ("CASH_IN", "CASH_OUT", "BUY", "SELL")
TRANSACTION_STATUSES = ("COMPLETED", "REVERSED")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("balance", sa.Numeric(19, 4), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_accounts_currency", "accounts", ["currency"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(length=20), nullable=False),
        sa.Column(
            "transaction_type",
            sa.Enum(*TRANSACTION_TYPES, name="transaction_type_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*TRANSACTION_STATUSES, name="transaction_status_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(19, 6), nullable=True),
        sa.Column("amount_settlement", sa.Numeric(19, 4), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("signature", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("reversed_by", sa.String(length=100), nullable=True),
        sa.Column("reversed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transactions_reference", "transactions", ["reference"], unique=True)
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"], unique=False)
    op.create_index(
        "ix_transactions_currency_type", "transactions", ["currency", "transaction_type"], unique=False
    )

    op.create_table(
        "balance_deltas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_balance_deltas_transaction_id", "balance_deltas", ["transaction_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_balance_deltas_transaction_id", table_name="balance_deltas")
    op.drop_table("balance_deltas")
    op.drop_index("ix_transactions_currency_type", table_name="transactions")
    op.drop_index("ix_transactions_created_at", table_name="transactions")
    op.drop_index("ix_transactions_reference", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_accounts_currency", table_name="accounts")
    op.drop_table("accounts")
    sa.Enum(name="transaction_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="transaction_type_enum").drop(op.get_bind(), checkfirst=True)
