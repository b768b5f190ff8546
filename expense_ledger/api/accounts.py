"""
Bank account API endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from expense_ledger.api.deps import get_current_user_id, http_error
from expense_ledger.errors import LedgerError
from expense_ledger.models.base import get_db
from expense_ledger.models.enums import AccountCategory, BankName, enum_values
from expense_ledger.schemas.account import (
    AccountFilters,
    AccountListResponse,
    AccountOpen,
    AccountResponse,
    AccountUpdate,
    DeactivatedResponse,
)
from expense_ledger.schemas.ledger import PaginationResponse
from expense_ledger.services.account_service import AccountService

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def open_account(
    request: AccountOpen,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Open a new account.

    A positive opening_balance is posted as the account's
    first ledger entry.
    """
    service = AccountService(db)
    try:
        account = service.open_account(user_id, request)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=AccountListResponse)
def list_accounts(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    List the caller's active accounts.

    Query parameters: page, limit, search, bank_name,
    account_type, sort_by, sort_order. Invalid values are
    ignored.
    """
    service = AccountService(db)
    page = service.list_accounts(user_id, dict(request.query_params))
    return AccountListResponse(
        accounts=[AccountResponse.model_validate(a) for a in page.accounts],
        pagination=PaginationResponse.model_validate(page.pagination),
        filters=AccountFilters(
            supported_banks=enum_values(BankName),
            account_types=enum_values(AccountCategory),
        ),
    )


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get account details, including the current balance."""
    service = AccountService(db)
    try:
        return service.get_account(account_id, user_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: str,
    request: AccountUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Change bank name, account type or account number."""
    service = AccountService(db)
    try:
        account = service.update_account(account_id, user_id, request)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.delete("/{account_id}", response_model=DeactivatedResponse)
def deactivate_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Deactivate (soft-delete) an account."""
    service = AccountService(db)
    try:
        service.deactivate_account(account_id, user_id)
        db.commit()
        return DeactivatedResponse(account_id=account_id)
    except LedgerError as e:
        db.rollback()
        raise http_error(e)
