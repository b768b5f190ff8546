"""SQLAlchemy-backed store for ledger entries."""

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from expense_ledger.models.enums import EntryDirection, EntryState
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.domain.balance import coerce_decimal
from expense_ledger.domain.query import StatementQuery, StatementSummary
from expense_ledger.stores.account_store import like_pattern

SORT_COLUMNS = {
    "entry_date": LedgerEntry.entry_date,
    "amount": LedgerEntry.amount,
    "created_at": LedgerEntry.created_at,
    "direction": LedgerEntry.direction,
}

SEARCH_COLUMNS = (
    LedgerEntry.description,
    LedgerEntry.reference,
    LedgerEntry.category,
)


class EntryStore:
    """
    Persistence for LedgerEntry rows.

    Only committed entries are visible to owner-scoped reads and
    statements; pending and reverted rows are reachable through
    pending() for the recovery sweep.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, entry: LedgerEntry) -> LedgerEntry:
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_for_owner(self, entry_id: str, user_id: str) -> LedgerEntry | None:
        return self.db.execute(
            select(LedgerEntry).where(
                LedgerEntry.id == entry_id,
                LedgerEntry.user_id == user_id,
                LedgerEntry.state == EntryState.COMMITTED,
            )
        ).scalar_one_or_none()

    def delete(self, entry: LedgerEntry) -> None:
        self.db.delete(entry)
        self.db.flush()

    def latest_committed(self, account_id: str) -> LedgerEntry | None:
        """The last entry applied to an account, by application order."""
        return self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.account_id == account_id,
                LedgerEntry.state == EntryState.COMMITTED,
            )
            .order_by(LedgerEntry.sequence.desc())
            .limit(1)
        ).scalar_one_or_none()

    def committed_after(self, account_id: str, sequence: int) -> list[LedgerEntry]:
        """Entries applied after the given one, oldest first."""
        entries = self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.account_id == account_id,
                LedgerEntry.state == EntryState.COMMITTED,
                LedgerEntry.sequence > sequence,
            )
            .order_by(LedgerEntry.sequence.asc())
        ).scalars().all()
        return list(entries)

    def first_committed_after(
        self, account_id: str, sequence: int
    ) -> LedgerEntry | None:
        return self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.account_id == account_id,
                LedgerEntry.state == EntryState.COMMITTED,
                LedgerEntry.sequence > sequence,
            )
            .order_by(LedgerEntry.sequence.asc())
            .limit(1)
        ).scalar_one_or_none()

    def max_sequence(self, account_id: str) -> int:
        """Highest sequence used by any row of the account, whatever its state."""
        return self.db.execute(
            select(func.coalesce(func.max(LedgerEntry.sequence), 0))
            .where(LedgerEntry.account_id == account_id)
        ).scalar_one()

    def pending(self) -> list[LedgerEntry]:
        entries = self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.state == EntryState.PENDING)
            .order_by(LedgerEntry.account_id, LedgerEntry.sequence)
        ).scalars().all()
        return list(entries)

    # --- Statement queries ---

    def _criteria(
        self, account_id: str, user_id: str, query: StatementQuery
    ) -> list:
        criteria = [
            LedgerEntry.account_id == account_id,
            LedgerEntry.user_id == user_id,
            LedgerEntry.state == EntryState.COMMITTED,
        ]
        if query.search:
            pattern = like_pattern(query.search)
            criteria.append(or_(
                *(column.ilike(pattern, escape="\\") for column in SEARCH_COLUMNS)
            ))
        if query.start_date is not None:
            criteria.append(LedgerEntry.entry_date >= query.start_date)
        if query.end_date is not None:
            criteria.append(LedgerEntry.entry_date <= query.end_date)
        if query.direction is not None:
            criteria.append(LedgerEntry.direction == query.direction)
        if query.category is not None:
            criteria.append(LedgerEntry.category == query.category)
        if query.min_amount is not None:
            criteria.append(LedgerEntry.amount >= query.min_amount)
        if query.max_amount is not None:
            criteria.append(LedgerEntry.amount <= query.max_amount)
        return criteria

    def find_page(
        self, account_id: str, user_id: str, query: StatementQuery
    ) -> list[LedgerEntry]:
        column = SORT_COLUMNS[query.sort_by]
        if query.descending:
            order = (column.desc(), LedgerEntry.sequence.desc())
        else:
            order = (column.asc(), LedgerEntry.sequence.asc())
        entries = self.db.execute(
            select(LedgerEntry)
            .where(*self._criteria(account_id, user_id, query))
            .order_by(*order)
            .offset(query.page.offset)
            .limit(query.page.limit)
        ).scalars().all()
        return list(entries)

    def count(self, account_id: str, user_id: str, query: StatementQuery) -> int:
        return self.db.execute(
            select(func.count())
            .select_from(LedgerEntry)
            .where(*self._criteria(account_id, user_id, query))
        ).scalar_one()

    def summarize(
        self, account_id: str, user_id: str, query: StatementQuery
    ) -> StatementSummary:
        """Sum and count credits and debits over the whole filter."""
        rows = self.db.execute(
            select(
                LedgerEntry.direction,
                func.coalesce(func.sum(LedgerEntry.amount), 0),
                func.count(),
            )
            .where(*self._criteria(account_id, user_id, query))
            .group_by(LedgerEntry.direction)
        ).all()

        totals = {direction: (coerce_decimal(0), 0) for direction in EntryDirection}
        for direction, total, count in rows:
            totals[EntryDirection(direction)] = (coerce_decimal(total), count)

        total_credit, credit_count = totals[EntryDirection.CREDIT]
        total_debit, debit_count = totals[EntryDirection.DEBIT]
        return StatementSummary(
            total_credit=total_credit,
            total_debit=total_debit,
            credit_count=credit_count,
            debit_count=debit_count,
        )
