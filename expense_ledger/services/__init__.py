"""Business logic services."""

from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.services.account_service import AccountService

__all__ = ["LedgerService", "AccountService"]
