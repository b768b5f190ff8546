"""
Input validation for ledger writes.

Write requests arrive loosely typed (amounts as strings or
numbers, enum values as plain strings). Everything is checked
here and turned into a ValidationError with the offending field,
before any store is touched.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from expense_ledger.errors import ValidationError
from expense_ledger.models.enums import (
    AccountCategory,
    BankName,
    CATEGORIES_BY_DIRECTION,
    EntryDirection,
)
from expense_ledger.domain.balance import MAX_MONEY, MONEY_QUANTUM

MAX_AMOUNT = MAX_MONEY

DESCRIPTION_MAX_LENGTH = 500
REFERENCE_MAX_LENGTH = 100
ACCOUNT_NUMBER_MAX_LENGTH = 34


@dataclass(frozen=True)
class EntryFields:
    """A validated ledger entry intent."""
    amount: Decimal
    direction: EntryDirection
    category: str
    description: str | None = None
    entry_date: datetime | None = None
    reference: str | None = None


def _is_blank(raw) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def parse_amount(raw, field: str = "amount", allow_zero: bool = False) -> Decimal:
    """Parse a positive decimal amount from a string or number."""
    if _is_blank(raw):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a number", field=field, value=raw)

    try:
        value = Decimal(raw.strip() if isinstance(raw, str) else str(raw))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field, value=raw)

    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field, value=raw)
    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(
            f"{field} must be a positive number", field=field, value=raw
        )
    if value >= MAX_AMOUNT:
        raise ValidationError(f"{field} is too large", field=field, value=raw)
    if value != value.quantize(MONEY_QUANTUM):
        raise ValidationError(
            f"{field} cannot have more than 4 decimal places",
            field=field,
            value=raw,
        )
    return value.quantize(MONEY_QUANTUM)


def parse_direction(raw) -> EntryDirection:
    if _is_blank(raw):
        raise ValidationError("direction is required", field="direction")
    try:
        return EntryDirection(raw)
    except ValueError:
        valid = ", ".join(d.value for d in EntryDirection)
        raise ValidationError(
            f"Invalid direction. Valid directions: {valid}",
            field="direction",
            value=raw,
        )


def check_category(raw, direction: EntryDirection) -> str:
    """Category must belong to the set for its direction."""
    if _is_blank(raw):
        raise ValidationError("category is required", field="category")
    allowed = CATEGORIES_BY_DIRECTION[direction]
    if raw not in allowed:
        raise ValidationError(
            f"Invalid category for {direction.value}. "
            f"Valid categories: {', '.join(allowed)}",
            field="category",
            value=raw,
        )
    return raw


def parse_bank_name(raw) -> BankName:
    if _is_blank(raw):
        raise ValidationError("bank_name is required", field="bank_name")
    try:
        return BankName(raw)
    except ValueError:
        valid = ", ".join(b.value for b in BankName)
        raise ValidationError(
            f"Invalid bank name. Supported banks: {valid}",
            field="bank_name",
            value=raw,
        )


def parse_account_type(raw) -> AccountCategory:
    try:
        return AccountCategory(raw)
    except ValueError:
        valid = ", ".join(t.value for t in AccountCategory)
        raise ValidationError(
            f"Invalid account type. Valid types: {valid}",
            field="account_type",
            value=raw,
        )


def clean_text(raw, field: str, max_length: int) -> str | None:
    """Trim optional free text; empty becomes None."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(
            f"{field} cannot exceed {max_length} characters", field=field
        )
    return text


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(raw) -> datetime | None:
    """
    Parse a date or datetime (object or ISO string).

    Returns None for unparseable input; callers decide whether
    that is an error.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return to_naive_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(raw.strip()))
    except ValueError:
        return None


def validate_entry(request) -> EntryFields:
    """
    Validate an EntryCreate/EntryAmend request.

    Direction is checked before category because the category
    set depends on it.
    """
    amount = parse_amount(request.amount)
    direction = parse_direction(request.direction)
    category = check_category(request.category, direction)

    entry_date = None
    if request.entry_date is not None:
        entry_date = parse_timestamp(request.entry_date)
        if entry_date is None:
            raise ValidationError(
                "entry_date must be an ISO 8601 date or datetime",
                field="entry_date",
                value=request.entry_date,
            )

    return EntryFields(
        amount=amount,
        direction=direction,
        category=category,
        description=clean_text(
            request.description, "description", DESCRIPTION_MAX_LENGTH
        ),
        entry_date=entry_date,
        reference=clean_text(request.reference, "reference", REFERENCE_MAX_LENGTH),
    )
