"""Persistence stores used by the services."""

from expense_ledger.stores.account_store import AccountStore
from expense_ledger.stores.entry_store import EntryStore

__all__ = ["AccountStore", "EntryStore"]
