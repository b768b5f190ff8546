"""
Ledger entry model.

Each entry is one balance-affecting event on a single account
and carries the balance immediately before and after it. The
snapshot fields are written only by the ledger engine.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Integer, Index,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import Base, utcnow
from expense_ledger.models.enums import EntryDirection, EntryState, enum_values
from expense_ledger.models.types import Money


class LedgerEntry(Base):
    """
    A credit or debit against one account.

    account_id is a plain reference, not a foreign key with
    cascade: entries outlive the account's active flag and
    deleting an entry never touches the account row directly.

    closing_balance = opening_balance + amount for credits and
    opening_balance - amount for debits. The LedgerService keeps
    this true; the model is just the data structure.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    account_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Money(), nullable=False
    )
    direction: Mapped[EntryDirection] = mapped_column(
        SAEnum(
            EntryDirection,
            name="entry_direction_enum",
            values_callable=enum_values,
            create_constraint=True,
        ),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(
        String(500), nullable=True, default=None
    )
    opening_balance: Mapped[Decimal] = mapped_column(
        Money(), nullable=False
    )
    closing_balance: Mapped[Decimal] = mapped_column(
        Money(), nullable=False
    )
    entry_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )
    reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True, default=None
    )
    state: Mapped[EntryState] = mapped_column(
        SAEnum(
            EntryState,
            name="entry_state_enum",
            values_callable=enum_values,
            create_constraint=True,
        ),
        nullable=False,
        default=EntryState.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        # Account statement
        Index("ix_ledger_entries_account_date", "account_id", "entry_date"),
        # Balance chain walk
        Index(
            "ix_ledger_entries_account_sequence",
            "account_id", "sequence", unique=True,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.direction.value} {self.amount} "
            f"{self.opening_balance}->{self.closing_balance} ({self.state.value})>"
        )
