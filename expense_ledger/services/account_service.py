"""
Account service — manages bank accounts and their lifecycle.

This service never touches a balance directly. Opening an
account with money in it posts an opening entry through the
ledger service, so the balance is backed by the ledger from
the first moment. Like the stores it only flushes; the caller
owns the commit.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from expense_ledger.config import get_settings
from expense_ledger.domain.query import AccountQuery, PaginationMeta
from expense_ledger.domain.validation import (
    ACCOUNT_NUMBER_MAX_LENGTH,
    clean_text,
    parse_account_type,
    parse_amount,
    parse_bank_name,
)
from expense_ledger.errors import NotFoundError, ValidationError
from expense_ledger.models.account import Account
from expense_ledger.models.enums import AccountCategory
from expense_ledger.schemas.account import AccountOpen, AccountUpdate
from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.stores.account_store import AccountStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountPage:
    accounts: list[Account]
    pagination: PaginationMeta


def _parse_currency(raw, default: str) -> str:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    code = str(raw).strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValidationError(
            "currency_code must be a 3-letter ISO 4217 code",
            field="currency_code",
            value=raw,
        )
    return code


def _parse_opening_balance(raw):
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return parse_amount(raw, field="opening_balance", allow_zero=True)


class AccountService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.ledger_service = LedgerService(db)
        self.settings = get_settings()

    def open_account(self, user_id: str, request: AccountOpen) -> Account:
        """
        Open a new account for user_id.

        A positive opening balance is recorded as a credit entry
        in the account's ledger rather than written to the
        balance column.
        """
        bank_name = parse_bank_name(request.bank_name)
        account_type = AccountCategory.SAVINGS
        if request.account_type is not None:
            account_type = parse_account_type(request.account_type)
        account_number = clean_text(
            request.account_number, "account_number", ACCOUNT_NUMBER_MAX_LENGTH
        )
        opening_balance = _parse_opening_balance(request.opening_balance)
        currency_code = _parse_currency(
            request.currency_code, self.settings.DEFAULT_CURRENCY
        )

        account = self.accounts.add(Account(
            user_id=user_id,
            bank_name=bank_name,
            account_type=account_type,
            account_number=account_number,
            currency_code=currency_code,
        ))

        if opening_balance:
            self.ledger_service.post_opening_balance(account, opening_balance)

        logger.info(
            "Account %s opened for user %s: %s %s, opening balance %s %s",
            account.id, user_id, bank_name.value, account_type.value,
            opening_balance or 0, currency_code,
        )
        return account

    def get_account(self, account_id: str, user_id: str) -> Account:
        """Get an active account owned by user_id."""
        account = self.accounts.get_for_owner(account_id, user_id)
        if not account:
            raise NotFoundError("Account not found", {"account_id": account_id})
        return account

    def list_accounts(
        self, user_id: str, params: Mapping[str, Any] | None = None
    ) -> AccountPage:
        """One page of the user's active accounts."""
        query = AccountQuery.from_params(params)
        accounts = self.accounts.find_page(user_id, query)
        total_count = self.accounts.count(user_id, query)
        return AccountPage(
            accounts=accounts,
            pagination=PaginationMeta.build(query.page, total_count),
        )

    def update_account(
        self, account_id: str, user_id: str, request: AccountUpdate
    ) -> Account:
        """
        Change an account's bank, type or number.

        Fields left out are untouched. Sending account_number as
        null or blank clears it.
        """
        account = self.get_account(account_id, user_id)

        changes = {}
        if request.bank_name is not None:
            changes["bank_name"] = parse_bank_name(request.bank_name)
        if request.account_type is not None:
            changes["account_type"] = parse_account_type(request.account_type)
        if "account_number" in request.model_fields_set:
            changes["account_number"] = clean_text(
                request.account_number, "account_number", ACCOUNT_NUMBER_MAX_LENGTH
            )

        if not changes:
            raise ValidationError("No valid fields to update")

        for name, value in changes.items():
            setattr(account, name, value)
        self.db.flush()

        logger.info(
            "Account %s updated: %s", account_id, ", ".join(sorted(changes))
        )
        return account

    def deactivate_account(self, account_id: str, user_id: str) -> Account:
        """
        Soft-delete an account.

        Its entries stay in place; the account just stops
        accepting new ones.
        """
        account = self.accounts.get_for_owner(account_id, user_id)
        if not account:
            raise NotFoundError(
                "Account not found or already deleted",
                {"account_id": account_id},
            )
        self.accounts.soft_delete(account)
        logger.info("Account %s deactivated", account_id)
        return account
