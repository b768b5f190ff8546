"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from expense_ledger.models.base import Base
from expense_ledger.models.enums import (
    BankName,
    AccountCategory,
    EntryDirection,
    EntryState,
)
from expense_ledger.models.account import Account
from expense_ledger.models.ledger_entry import LedgerEntry

__all__ = [
    "Base",
    "BankName",
    "AccountCategory",
    "EntryDirection",
    "EntryState",
    "Account",
    "LedgerEntry",
]
