"""
Tests for account statements: filters, sorting, paging and
the credit/debit summary.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from expense_ledger.domain.query import StatementQuery
from expense_ledger.errors import NotFoundError
from expense_ledger.schemas.account import AccountOpen
from expense_ledger.schemas.ledger import EntryCreate
from expense_ledger.services.account_service import AccountService
from expense_ledger.services.ledger_service import LedgerService

USER = "user-1"


def open_account(db, user_id=USER):
    account = AccountService(db).open_account(user_id, AccountOpen(bank_name="SBI"))
    db.commit()
    return account.id


def post(service, account_id, amount, direction, category, entry_date, **fields):
    return service.apply(account_id, USER, EntryCreate(
        amount=amount,
        direction=direction,
        category=category,
        entry_date=entry_date,
        **fields,
    ))


@pytest.fixture
def statement_account(db_session):
    """An account with a small, dated history."""
    service = LedgerService(db_session)
    account_id = open_account(db_session)
    post(service, account_id, "50", "credit", "Gift", "2024-01-05",
         description="Birthday gift")
    post(service, account_id, "150", "credit", "Refund", "2024-01-10",
         reference="RF-100")
    post(service, account_id, "900", "credit", "Salary", "2024-01-31",
         description="January salary")
    post(service, account_id, "1500", "credit", "Freelance", "2024-02-15")
    post(service, account_id, "200", "debit", "Food", "2024-02-01",
         description="Groceries at 50% off")
    return account_id


def listing(service, account_id, **params):
    return service.list_for_account(
        account_id, USER, StatementQuery.from_params(params)
    )


class TestFilters:

    def test_amount_range_and_direction(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(
            service, statement_account,
            min_amount="100", max_amount="1000", type="credit", page="1", limit="10",
        )

        assert [e.amount for e in statement.entries] == [Decimal("900"), Decimal("150")]
        assert statement.pagination.total_count == 2
        assert statement.pagination.has_next_page is False
        assert statement.pagination.has_prev_page is False
        assert statement.summary.total_credit == Decimal("1050")
        assert statement.summary.credit_count == 2
        assert statement.summary.debit_count == 0
        assert statement.current_balance == Decimal("2400")

    def test_amount_bounds_are_inclusive(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, min_amount="150", max_amount="900")

        assert {e.amount for e in statement.entries} == {
            Decimal("150"), Decimal("200"), Decimal("900"),
        }

    def test_category_filter(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, category="Food")

        assert [e.category for e in statement.entries] == ["Food"]
        assert statement.summary.total_debit == Decimal("200")

    def test_search_is_case_insensitive(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, search="SALARY")

        assert len(statement.entries) == 1
        assert statement.entries[0].description == "January salary"

    def test_search_covers_reference_and_category(self, db_session, statement_account):
        service = LedgerService(db_session)

        assert len(listing(service, statement_account, search="rf-1").entries) == 1
        assert len(listing(service, statement_account, search="freelance").entries) == 1

    def test_search_treats_wildcards_literally(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, search="50%")

        assert [e.category for e in statement.entries] == ["Food"]

    def test_date_range_with_whole_day_end_date(self, db_session, statement_account):
        service = LedgerService(db_session)
        post(service, statement_account, "10", "debit", "Transport",
             "2024-01-31T18:30:00")

        statement = listing(
            service, statement_account, start_date="2024-01-10", end_date="2024-01-31",
        )

        assert statement.pagination.total_count == 3
        assert all(
            datetime(2024, 1, 10) <= e.entry_date <= datetime(2024, 1, 31, 23, 59, 59, 999999)
            for e in statement.entries
        )

    def test_invalid_filters_are_ignored(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(
            service, statement_account,
            type="transfer", category="Lottery", min_amount="lots",
            start_date="yesterday", page="abc", sort_by="colour",
        )

        assert statement.pagination.total_count == 5
        assert statement.pagination.current_page == 1

    def test_summary_ignores_paging(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, limit="2")

        assert len(statement.entries) == 2
        assert statement.summary.credit_count == 4
        assert statement.summary.debit_count == 1
        assert statement.summary.total_credit == Decimal("2600")
        assert statement.summary.total_debit == Decimal("200")


class TestSortingAndPaging:

    def test_default_sort_is_entry_date_descending(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account)

        dates = [e.entry_date for e in statement.entries]
        assert dates == sorted(dates, reverse=True)

    def test_sort_by_amount_ascending(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, sort_by="amount", sort_order="asc")

        amounts = [e.amount for e in statement.entries]
        assert amounts == sorted(amounts)

    def test_paging_metadata(self, db_session):
        service = LedgerService(db_session)
        account_id = open_account(db_session)
        for day in range(1, 26):
            post(service, account_id, "1", "credit", "Gift", f"2024-03-{day:02d}")

        statement = listing(service, account_id, page="2", limit="10")

        assert len(statement.entries) == 10
        assert statement.pagination.current_page == 2
        assert statement.pagination.total_pages == 3
        assert statement.pagination.total_count == 25
        assert statement.pagination.has_next_page is True
        assert statement.pagination.has_prev_page is True
        assert statement.entries[0].entry_date == datetime(2024, 3, 15)

    def test_limit_is_capped(self, db_session, statement_account):
        service = LedgerService(db_session)

        statement = listing(service, statement_account, limit="5000")

        assert statement.pagination.per_page == 100

    def test_ties_are_broken_by_application_order(self, db_session):
        service = LedgerService(db_session)
        account_id = open_account(db_session)
        ids = [
            post(service, account_id, "5", "credit", "Gift", "2024-04-01").id
            for _ in range(4)
        ]

        statement = listing(service, account_id)

        assert [e.id for e in statement.entries] == list(reversed(ids))

    def test_identical_queries_return_identical_pages(self, db_session, statement_account):
        service = LedgerService(db_session)
        params = {"search": "a", "sort_by": "direction", "limit": "3"}

        first = listing(service, statement_account, **params)
        second = listing(service, statement_account, **params)

        assert [e.id for e in first.entries] == [e.id for e in second.entries]
        assert first.pagination == second.pagination
        assert first.summary == second.summary


class TestScoping:

    def test_other_users_account_rejected(self, db_session, statement_account):
        service = LedgerService(db_session)

        with pytest.raises(NotFoundError):
            service.list_for_account(statement_account, "user-2")

    def test_empty_account(self, db_session):
        service = LedgerService(db_session)
        account_id = open_account(db_session)

        statement = service.list_for_account(account_id, USER)

        assert statement.entries == []
        assert statement.pagination.total_count == 0
        assert statement.pagination.has_next_page is False
        assert statement.current_balance == Decimal("0")
