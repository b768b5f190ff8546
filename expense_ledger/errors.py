"""
Ledger error taxonomy.

Services raise these; the API layer turns them into HTTP
responses using status_code and to_dict(). None of them is
retried inside the engine.
"""

from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """Base class for every error the ledger reports to callers."""

    kind = "ledger_error"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LedgerError):
    """Malformed or out-of-range input. The caller must fix the request."""

    kind = "validation"
    status_code = 400

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field is not None:
            details["field"] = field
            details["value"] = None if value is None else str(value)
        super().__init__(message, details)
        self.field = field


class NotFoundError(LedgerError):
    """Account or entry is missing, inactive, or owned by someone else."""

    kind = "not_found"
    status_code = 404


class InsufficiencyError(LedgerError):
    """A debit (or a reversal) would drive the balance below zero."""

    kind = "insufficient_balance"
    status_code = 400

    def __init__(self, current_balance: Decimal, requested_amount: Decimal):
        super().__init__(
            "Insufficient balance",
            {
                "current_balance": str(current_balance),
                "requested_amount": str(requested_amount),
            },
        )
        self.current_balance = current_balance
        self.requested_amount = requested_amount


class ConsistencyError(LedgerError):
    """
    The entry write and the balance write did not land together.

    Should not normally surface; when it does, the account needs
    reconciliation.
    """

    kind = "consistency"
    status_code = 500
