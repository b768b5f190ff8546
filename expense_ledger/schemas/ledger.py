"""
Pydantic schemas for ledger entry operations.

Request fields are deliberately loose (amounts may be strings or
numbers, enum values are plain strings): the ledger service
validates them and reports failures with its own error kinds.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from expense_ledger.models.enums import EntryDirection


# --- Request Schemas ---

class EntryCreate(BaseModel):
    """Intent to apply a new entry to an account."""
    amount: str | int | float | None = None
    direction: str | None = None
    category: str | None = None
    description: str | None = None
    entry_date: str | datetime | None = None
    reference: str | None = None


class EntryAmend(EntryCreate):
    """
    Replacement values for an existing entry.

    amount, direction and category are required exactly as for
    EntryCreate. Optional fields left out keep their stored value.
    """


# --- Response Schemas ---

class EntryResponse(BaseModel):
    id: str
    account_id: str
    user_id: str
    amount: Decimal
    direction: EntryDirection
    category: str
    description: str | None
    opening_balance: Decimal
    closing_balance: Decimal
    entry_date: datetime
    reference: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RemovalResponse(BaseModel):
    removed_entry_id: str
    # None when the account was missing or inactive
    new_balance: Decimal | None

    model_config = {"from_attributes": True}


class PaginationResponse(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    per_page: int
    has_next_page: bool
    has_prev_page: bool

    model_config = {"from_attributes": True}


class SummaryResponse(BaseModel):
    total_credit: Decimal
    total_debit: Decimal
    credit_count: int
    debit_count: int

    model_config = {"from_attributes": True}


class CategoriesResponse(BaseModel):
    categories: dict[str, list[str]]
    all_categories: list[str]


class StatementResponse(BaseModel):
    """An account statement page with its aggregates."""
    entries: list[EntryResponse]
    pagination: PaginationResponse
    summary: SummaryResponse
    current_balance: Decimal
    filters: CategoriesResponse = Field(
        description="Closed value sets the statement can be filtered by"
    )


class ReconciliationResponse(BaseModel):
    account_id: str
    previous_balance: Decimal
    reconciled_balance: Decimal
    corrected: bool

    model_config = {"from_attributes": True}
