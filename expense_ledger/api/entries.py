"""
Ledger entry API endpoints.

The ledger service commits or rolls back its own writes, so
these routes only translate errors.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from expense_ledger.api.deps import get_current_user_id, http_error
from expense_ledger.domain.query import StatementQuery
from expense_ledger.errors import LedgerError
from expense_ledger.models.base import get_db
from expense_ledger.models.enums import ALL_CATEGORIES
from expense_ledger.schemas.ledger import (
    CategoriesResponse,
    EntryAmend,
    EntryCreate,
    EntryResponse,
    PaginationResponse,
    ReconciliationResponse,
    RemovalResponse,
    StatementResponse,
    SummaryResponse,
)
from expense_ledger.services.ledger_service import (
    LedgerService,
    categories_by_direction,
)

router = APIRouter(tags=["Ledger"])


def _categories() -> CategoriesResponse:
    return CategoriesResponse(
        categories=categories_by_direction(),
        all_categories=list(ALL_CATEGORIES),
    )


@router.get("/categories", response_model=CategoriesResponse)
def list_categories():
    """Valid entry categories for each direction."""
    return _categories()


# --- Account-scoped Endpoints ---

@router.post(
    "/accounts/{account_id}/entries",
    response_model=EntryResponse,
    status_code=201,
)
def apply_entry(
    account_id: str,
    request: EntryCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Record a credit or debit against an account.

    The account balance and the entry are written together;
    a debit larger than the balance is rejected.
    """
    service = LedgerService(db)
    try:
        return service.apply(account_id, user_id, request)
    except LedgerError as e:
        raise http_error(e)


@router.get("/accounts/{account_id}/entries", response_model=StatementResponse)
def account_statement(
    account_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    One page of an account's statement.

    Query parameters: page, limit, search, start_date, end_date,
    type, category, min_amount, max_amount, sort_by, sort_order.
    Invalid values are ignored.
    """
    service = LedgerService(db)
    query = StatementQuery.from_params(dict(request.query_params))
    try:
        statement = service.list_for_account(account_id, user_id, query)
    except LedgerError as e:
        raise http_error(e)

    return StatementResponse(
        entries=[EntryResponse.model_validate(e) for e in statement.entries],
        pagination=PaginationResponse.model_validate(statement.pagination),
        summary=SummaryResponse.model_validate(statement.summary),
        current_balance=statement.current_balance,
        filters=_categories(),
    )


@router.post(
    "/accounts/{account_id}/reconcile",
    response_model=ReconciliationResponse,
)
def reconcile_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Reset the account balance to what its ledger says."""
    service = LedgerService(db)
    try:
        return service.reconcile(account_id, user_id)
    except LedgerError as e:
        raise http_error(e)


# --- Entry Endpoints ---

@router.get("/entries/{entry_id}", response_model=EntryResponse)
def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = LedgerService(db)
    try:
        return service.get_entry(entry_id, user_id)
    except LedgerError as e:
        raise http_error(e)


@router.put("/entries/{entry_id}", response_model=EntryResponse)
def amend_entry(
    entry_id: str,
    request: EntryAmend,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Replace an entry's amount, direction and category."""
    service = LedgerService(db)
    try:
        return service.amend(entry_id, user_id, request)
    except LedgerError as e:
        raise http_error(e)


@router.delete("/entries/{entry_id}", response_model=RemovalResponse)
def remove_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete an entry and reverse its effect on the balance."""
    service = LedgerService(db)
    try:
        return service.remove(entry_id, user_id)
    except LedgerError as e:
        raise http_error(e)
