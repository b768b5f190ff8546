"""
Directional balance arithmetic.

Every balance the ledger stores is produced by these helpers,
so the entry invariant (closing = opening +/- amount) has a
single implementation.
"""

from decimal import Decimal

from expense_ledger.errors import InsufficiencyError, ValidationError
from expense_ledger.models.enums import EntryDirection
from expense_ledger.models.types import MAX_MONEY, MONEY_PLACES, MONEY_QUANTUM

__all__ = [
    "MAX_MONEY", "MONEY_PLACES", "MONEY_QUANTUM", "ZERO",
    "coerce_decimal", "signed_amount", "shift_balance",
    "check_balance_limit", "calculate_new_balance",
]

ZERO = Decimal("0")


def coerce_decimal(value) -> Decimal:
    """Normalize numeric values read back from the database."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANTUM)


def signed_amount(amount: Decimal, direction: EntryDirection) -> Decimal:
    """The effect an entry has on its account balance."""
    if direction == EntryDirection.CREDIT:
        return amount
    return -amount


def shift_balance(
    balance: Decimal, amount: Decimal, direction: EntryDirection
) -> Decimal:
    """Apply a directional amount without any sufficiency check."""
    return coerce_decimal(balance + signed_amount(amount, direction))


def check_balance_limit(balance: Decimal, amount: Decimal) -> None:
    """A balance must stay below the largest storable money value."""
    if balance >= MAX_MONEY:
        raise ValidationError(
            f"Balance would exceed the maximum of {MAX_MONEY}",
            field="amount",
            value=amount,
        )


def calculate_new_balance(
    current_balance: Decimal, amount: Decimal, direction: EntryDirection
) -> Decimal:
    """
    Balance after applying amount in direction.

    Raises InsufficiencyError when a debit exceeds the current
    balance; nothing has been mutated at that point.
    """
    current_balance = coerce_decimal(current_balance)
    if direction == EntryDirection.DEBIT and current_balance < amount:
        raise InsufficiencyError(current_balance, amount)
    new_balance = shift_balance(current_balance, amount, direction)
    check_balance_limit(new_balance, amount)
    return new_balance
