"""Accounts and ledger entries

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

from expense_ledger.models.types import Money

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

BANK_NAMES = ("HDFC", "SBI", "BOB", "Axis", "ICICI", "Kotak", "PNB", "Other")
ACCOUNT_TYPES = ("Savings", "Current", "Salary", "Fixed Deposit")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "bank_name",
            sa.Enum(*BANK_NAMES, name="bank_name_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column(
            "account_type",
            sa.Enum(*ACCOUNT_TYPES, name="account_type_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column("account_number", sa.String(34), nullable=True),
        sa.Column("current_balance", Money(), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_entry_seq", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("account_id", sa.String(36), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("amount", Money(), nullable=False),
        sa.Column(
            "direction",
            sa.Enum("credit", "debit", name="entry_direction_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("opening_balance", Money(), nullable=False),
        sa.Column("closing_balance", Money(), nullable=False),
        sa.Column("entry_date", sa.DateTime(), nullable=False),
        sa.Column("reference", sa.String(100), nullable=True),
        sa.Column(
            "state",
            sa.Enum(
                "pending", "committed", "reverted",
                name="entry_state_enum", create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_ledger_entries_user_id", "ledger_entries", ["user_id"])
    op.create_index("ix_ledger_entries_account_id", "ledger_entries", ["account_id"])
    op.create_index("ix_ledger_entries_entry_date", "ledger_entries", ["entry_date"])
    op.create_index(
        "ix_ledger_entries_account_date",
        "ledger_entries", ["account_id", "entry_date"],
    )
    op.create_index(
        "ix_ledger_entries_account_sequence",
        "ledger_entries", ["account_id", "sequence"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_table("ledger_entries")
    op.drop_table("accounts")
    if op.get_bind().dialect.name == "postgresql":
        for enum_name in (
            "entry_state_enum", "entry_direction_enum",
            "account_type_enum", "bank_name_enum",
        ):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
