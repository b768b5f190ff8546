"""
Pydantic schemas for bank account operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from expense_ledger.models.enums import BankName, AccountCategory
from expense_ledger.schemas.ledger import PaginationResponse


# --- Request Schemas ---

class AccountOpen(BaseModel):
    """Request to open a new account."""
    bank_name: str | None = None
    account_type: str | None = None
    account_number: str | None = None
    opening_balance: str | int | float | None = None
    currency_code: str | None = None


class AccountUpdate(BaseModel):
    """
    Editable account details.

    The balance is not here on purpose: only the ledger engine
    changes it.
    """
    bank_name: str | None = None
    account_type: str | None = None
    account_number: str | None = None


# --- Response Schemas ---

class AccountResponse(BaseModel):
    id: str
    user_id: str
    bank_name: BankName
    account_type: AccountCategory
    account_number: str | None
    current_balance: Decimal
    currency_code: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountFilters(BaseModel):
    supported_banks: list[str]
    account_types: list[str]


class AccountListResponse(BaseModel):
    accounts: list[AccountResponse]
    pagination: PaginationResponse
    filters: AccountFilters


class DeactivatedResponse(BaseModel):
    account_id: str
