"""
Bank account model.

The account is the aggregate root for balance purposes: it
holds the running balance that the ledger engine maintains.
Accounts are never physically removed, only deactivated, so
the ledger entries that reference them stay valid.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Integer,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import Base, utcnow
from expense_ledger.models.enums import BankName, AccountCategory, enum_values
from expense_ledger.models.types import Money


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    bank_name: Mapped[BankName] = mapped_column(
        SAEnum(
            BankName,
            name="bank_name_enum",
            values_callable=enum_values,
            create_constraint=True,
        ),
        nullable=False,
    )
    account_type: Mapped[AccountCategory] = mapped_column(
        SAEnum(
            AccountCategory,
            name="account_type_enum",
            values_callable=enum_values,
            create_constraint=True,
        ),
        nullable=False,
        default=AccountCategory.SAVINGS,
    )
    account_number: Mapped[str | None] = mapped_column(
        String(34), nullable=True, default=None
    )
    # Mutated only by the ledger engine
    current_balance: Mapped[Decimal] = mapped_column(
        Money(), nullable=False, default=Decimal("0")
    )
    currency_code: Mapped[str] = mapped_column(
        String(3), nullable=False, default="INR"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    # Application counter; each new entry takes the next value
    last_entry_seq: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    # A concurrent writer that read an older version fails its flush
    # with StaleDataError instead of overwriting the balance.
    __mapper_args__ = {"version_id_col": version}

    def next_sequence(self, highest_seen: int = 0) -> int:
        """
        Reserve the application sequence for a new entry.

        highest_seen covers entry rows whose balance write never
        landed, so a sequence is never handed out twice.
        """
        self.last_entry_seq = max(self.last_entry_seq, highest_seen) + 1
        return self.last_entry_seq

    def __repr__(self) -> str:
        return (
            f"<Account {self.id} {self.bank_name.value} "
            f"{self.current_balance} {self.currency_code}>"
        )
