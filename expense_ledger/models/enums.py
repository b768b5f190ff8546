"""
Closed enumerations for accounts and ledger entries.

Values are the exact strings callers send and the database
stores. Anything outside these sets is rejected before it
reaches a model.
"""

import enum


class BankName(str, enum.Enum):
    """Supported banks/issuers."""
    HDFC = "HDFC"
    SBI = "SBI"
    BOB = "BOB"
    AXIS = "Axis"
    ICICI = "ICICI"
    KOTAK = "Kotak"
    PNB = "PNB"
    OTHER = "Other"


class AccountCategory(str, enum.Enum):
    """Kind of bank account."""
    SAVINGS = "Savings"
    CURRENT = "Current"
    SALARY = "Salary"
    FIXED_DEPOSIT = "Fixed Deposit"


class EntryDirection(str, enum.Enum):
    """Direction of a ledger entry."""
    CREDIT = "credit"
    DEBIT = "debit"

    @property
    def reversed(self) -> "EntryDirection":
        """The direction that undoes this one."""
        if self is EntryDirection.CREDIT:
            return EntryDirection.DEBIT
        return EntryDirection.CREDIT


class EntryState(str, enum.Enum):
    """
    Write-protocol state of a ledger entry.

    Transitions:
    - PENDING -> COMMITTED: the account balance write landed
    - PENDING -> REVERTED: the account balance write never landed

    The entry and its balance write commit in one transaction, so a
    PENDING row never outlives a commit on a transactional store. The
    recovery sweep exists for stores without transactions.
    """
    PENDING = "pending"
    COMMITTED = "committed"
    REVERTED = "reverted"


CREDIT_CATEGORIES: tuple[str, ...] = (
    "Salary",
    "Freelance",
    "Investment",
    "Refund",
    "Gift",
    "Other Income",
)

DEBIT_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transport",
    "Shopping",
    "Bills",
    "Entertainment",
    "Health",
    "Education",
    "Other Expense",
)

CATEGORIES_BY_DIRECTION: dict[EntryDirection, tuple[str, ...]] = {
    EntryDirection.CREDIT: CREDIT_CATEGORIES,
    EntryDirection.DEBIT: DEBIT_CATEGORIES,
}

ALL_CATEGORIES: tuple[str, ...] = CREDIT_CATEGORIES + DEBIT_CATEGORIES

# Category used when an account is opened with a starting balance
OPENING_BALANCE_CATEGORY = "Other Income"


def enum_values(enum_cls) -> list[str]:
    """Store enum values (not member names) in the database."""
    return [member.value for member in enum_cls]
