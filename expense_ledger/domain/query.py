"""
Listing query parsing: pagination, sorting and filters.

Listing parameters are forgiving. A value that does not parse or
is outside its closed set is dropped, never reported as an error.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, time
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any

from expense_ledger.config import get_settings
from expense_ledger.models.enums import (
    ALL_CATEGORIES,
    AccountCategory,
    BankName,
    EntryDirection,
)
from expense_ledger.domain.validation import parse_timestamp
from expense_ledger.models.types import MAX_MONEY, MONEY_QUANTUM

ENTRY_SORT_FIELDS = ("entry_date", "amount", "created_at", "direction")
ACCOUNT_SORT_FIELDS = ("created_at", "current_balance", "bank_name", "account_type")

# Pages past this are treated as absent so offsets stay within int64
MAX_PAGE = 10 ** 9


@dataclass(frozen=True)
class Page:
    number: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.limit


@dataclass(frozen=True)
class PaginationMeta:
    current_page: int
    total_pages: int
    total_count: int
    per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: Page, total_count: int) -> "PaginationMeta":
        total_pages = math.ceil(total_count / page.limit)
        return cls(
            current_page=page.number,
            total_pages=total_pages,
            total_count=total_count,
            per_page=page.limit,
            has_next_page=page.number < total_pages,
            has_prev_page=page.number > 1,
        )


@dataclass(frozen=True)
class StatementSummary:
    """Credit/debit totals over every entry matching a filter, ignoring paging."""
    total_credit: Decimal = Decimal("0")
    total_debit: Decimal = Decimal("0")
    credit_count: int = 0
    debit_count: int = 0


def _parse_int(raw) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def parse_page(params: Mapping[str, Any], max_limit: int, default_limit: int) -> Page:
    page = _parse_int(params.get("page"))
    limit = _parse_int(params.get("limit"))
    if page is None or not 1 <= page <= MAX_PAGE:
        page = 1
    limit = min(max_limit, max(1, limit or default_limit))
    return Page(number=page, limit=limit)


def parse_sort(
    params: Mapping[str, Any], valid_fields: tuple[str, ...], default_field: str
) -> tuple[str, bool]:
    """Return (field, descending). Only an explicit "asc" sorts ascending."""
    sort_by = params.get("sort_by")
    field = sort_by if sort_by in valid_fields else default_field
    descending = str(params.get("sort_order") or "").lower() != "asc"
    return field, descending


def parse_optional_decimal(raw) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def _parse_amount_bound(raw, rounding) -> Decimal | None:
    """Clamp a range bound into storable money so it binds like a stored amount."""
    value = parse_optional_decimal(raw)
    if value is None:
        return None
    value = min(max(value, -MAX_MONEY), MAX_MONEY)
    return value.quantize(MONEY_QUANTUM, rounding=rounding)


def _clean_search(raw) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _is_date_only(raw) -> bool:
    if isinstance(raw, str):
        return len(raw.strip()) == 10
    return False


def _parse_end_bound(raw) -> datetime | None:
    """A date-only upper bound covers the whole of that day."""
    value = parse_timestamp(raw)
    if value is not None and _is_date_only(raw):
        value = datetime.combine(value.date(), time.max)
    return value


def _closed_value(raw, enum_cls):
    try:
        return enum_cls(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class StatementQuery:
    """Filters, sort and page for an account statement."""
    page: Page
    search: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    direction: EntryDirection | None = None
    category: str | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    sort_by: str = "entry_date"
    descending: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None = None) -> "StatementQuery":
        params = params or {}
        settings = get_settings()
        sort_by, descending = parse_sort(params, ENTRY_SORT_FIELDS, "entry_date")
        category = params.get("category")
        return cls(
            page=parse_page(
                params, settings.MAX_ENTRY_PAGE_SIZE, settings.DEFAULT_PAGE_SIZE
            ),
            search=_clean_search(params.get("search")),
            start_date=parse_timestamp(params.get("start_date")),
            end_date=_parse_end_bound(params.get("end_date")),
            direction=_closed_value(params.get("type"), EntryDirection),
            category=category if category in ALL_CATEGORIES else None,
            min_amount=_parse_amount_bound(params.get("min_amount"), ROUND_CEILING),
            max_amount=_parse_amount_bound(params.get("max_amount"), ROUND_FLOOR),
            sort_by=sort_by,
            descending=descending,
        )


@dataclass(frozen=True)
class AccountQuery:
    """Filters, sort and page for an account listing."""
    page: Page
    search: str | None = None
    bank_name: BankName | None = None
    account_type: AccountCategory | None = None
    sort_by: str = "created_at"
    descending: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None = None) -> "AccountQuery":
        params = params or {}
        settings = get_settings()
        sort_by, descending = parse_sort(params, ACCOUNT_SORT_FIELDS, "created_at")
        return cls(
            page=parse_page(
                params, settings.MAX_ACCOUNT_PAGE_SIZE, settings.DEFAULT_PAGE_SIZE
            ),
            search=_clean_search(params.get("search")),
            bank_name=_closed_value(params.get("bank_name"), BankName),
            account_type=_closed_value(params.get("account_type"), AccountCategory),
            sort_by=sort_by,
            descending=descending,
        )
