"""
Ledger service — the core of the expense ledger.

This service enforces the fundamental rules:
1. Every balance change is backed by exactly one ledger entry
2. Every entry satisfies closing = opening +/- amount
3. No committed operation leaves a balance below zero
4. The account balance equals the closing balance of the last
   entry applied to it

No other service writes account balances. Every write runs
under the account's lock and commits the entry write and the
balance write together; ledger rows are always written before
the balance so reconcile() can repair a partial write.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from expense_ledger.config import get_settings
from expense_ledger.domain.balance import (
    ZERO,
    calculate_new_balance,
    check_balance_limit,
    coerce_decimal,
    shift_balance,
)
from expense_ledger.domain.query import PaginationMeta, StatementQuery, StatementSummary
from expense_ledger.domain.validation import EntryFields, validate_entry
from expense_ledger.errors import (
    ConsistencyError,
    InsufficiencyError,
    LedgerError,
    NotFoundError,
)
from expense_ledger.models.account import Account
from expense_ledger.models.base import utcnow
from expense_ledger.models.enums import (
    CATEGORIES_BY_DIRECTION,
    EntryDirection,
    EntryState,
    OPENING_BALANCE_CATEGORY,
)
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.schemas.ledger import EntryAmend, EntryCreate
from expense_ledger.services.locks import AccountLocks, account_locks
from expense_ledger.stores.account_store import AccountStore
from expense_ledger.stores.entry_store import EntryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovalResult:
    removed_entry_id: str
    # None when the account was missing or inactive
    new_balance: Decimal | None


@dataclass(frozen=True)
class Statement:
    entries: list[LedgerEntry]
    pagination: PaginationMeta
    summary: StatementSummary
    current_balance: Decimal


@dataclass(frozen=True)
class ReconciliationResult:
    account_id: str
    previous_balance: Decimal
    reconciled_balance: Decimal
    corrected: bool


@dataclass
class RecoveryReport:
    """Outcome of a pending-entry sweep, as lists of entry ids."""
    committed: list[str] = field(default_factory=list)
    reverted: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def categories_by_direction() -> dict[str, list[str]]:
    """The closed category sets, keyed by direction value."""
    return {
        direction.value: list(categories)
        for direction, categories in CATEGORIES_BY_DIRECTION.items()
    }


class LedgerService:
    """
    All balance changes pass through this service.

    Unlike the account service, the ledger owns its unit of
    work: apply, amend, remove and reconcile commit on success
    and roll back on any failure, because the entry write and
    the balance write must land together.
    """

    def __init__(self, db: Session, locks: AccountLocks | None = None):
        self.db = db
        self.accounts = AccountStore(db)
        self.entries = EntryStore(db)
        self.locks = locks or account_locks
        self.settings = get_settings()

    # --- Write protocol ---

    def _run_write(self, account_id: str, operation, action: str):
        """
        Run operation() under the account lock and commit it.

        A StaleDataError means another process changed the account
        between our read and our write; the whole read-modify-write
        is retried from a fresh read. Any other unexpected failure
        rolls both writes back and surfaces as ConsistencyError.
        """
        attempts = max(1, self.settings.LEDGER_MAX_RETRIES)
        with self.locks.hold(account_id):
            for attempt in range(1, attempts + 1):
                try:
                    result = operation()
                    self.db.commit()
                    return result
                except StaleDataError:
                    self.db.rollback()
                    logger.warning(
                        "Version conflict on account %s during %s "
                        "(attempt %d/%d)",
                        account_id, action, attempt, attempts,
                    )
                except ConsistencyError:
                    self.db.rollback()
                    logger.exception(
                        "Consistency failure on account %s during %s",
                        account_id, action,
                    )
                    raise
                except LedgerError:
                    self.db.rollback()
                    raise
                except Exception as e:
                    self.db.rollback()
                    logger.exception(
                        "Ledger write failed on account %s during %s; "
                        "rolled back", account_id, action,
                    )
                    raise ConsistencyError(
                        f"{action} did not complete on account {account_id}; "
                        "no changes were kept",
                        {"account_id": account_id, "action": action},
                    ) from e

        logger.error(
            "Giving up on %s for account %s after %d version conflicts",
            action, account_id, attempts,
        )
        raise ConsistencyError(
            f"{action} could not be serialized on account {account_id}",
            {"account_id": account_id, "action": action},
        )

    def _write_balance(self, account: Account, new_balance: Decimal) -> None:
        """Second write of every operation: the account's running balance."""
        account.current_balance = new_balance
        self.db.flush()

    def _rethread(
        self,
        account_id: str,
        after_sequence: int,
        opening: Decimal,
        expected_final: Decimal,
    ) -> None:
        """
        Recompute snapshots of the entries applied after after_sequence.

        Each later entry opens at the previous one's closing balance.
        The chain must end at expected_final, the balance the
        undo-then-redo rule produced; otherwise the ledger had
        already drifted from the account and needs reconciling.
        """
        balance = opening
        for later in self.entries.committed_after(account_id, after_sequence):
            later.opening_balance = balance
            later.closing_balance = shift_balance(
                balance, coerce_decimal(later.amount), later.direction
            )
            balance = later.closing_balance
            check_balance_limit(balance, later.amount)

        if balance != expected_final:
            raise ConsistencyError(
                f"Ledger for account {account_id} has drifted from its "
                "balance; reconcile the account",
                {
                    "account_id": account_id,
                    "ledger_balance": str(balance),
                    "account_balance": str(expected_final),
                },
            )
        self.db.flush()

    # --- Lookups ---

    def _require_account(self, account_id: str, user_id: str) -> Account:
        account = self.accounts.get_for_owner(account_id, user_id)
        if not account:
            raise NotFoundError("Account not found", {"account_id": account_id})
        return account

    def _require_entry(self, entry_id: str, user_id: str) -> LedgerEntry:
        entry = self.entries.get_for_owner(entry_id, user_id)
        if not entry:
            raise NotFoundError("Entry not found", {"entry_id": entry_id})
        return entry

    def get_entry(self, entry_id: str, user_id: str) -> LedgerEntry:
        """Get one committed entry owned by user_id."""
        return self._require_entry(entry_id, user_id)

    # --- Apply ---

    def _apply_to(
        self, account: Account, user_id: str, fields: EntryFields
    ) -> LedgerEntry:
        """
        Post an entry against an already-locked account.

        Write order: entry as PENDING, then the balance, then the
        entry marked COMMITTED. Does not commit.
        """
        opening = coerce_decimal(account.current_balance)
        try:
            closing = calculate_new_balance(opening, fields.amount, fields.direction)
        except InsufficiencyError:
            logger.warning(
                "Rejected %s of %s on account %s: balance is %s",
                fields.direction.value, fields.amount, account.id, opening,
            )
            raise

        sequence = account.next_sequence(self.entries.max_sequence(account.id))
        entry = LedgerEntry(
            user_id=user_id,
            account_id=account.id,
            sequence=sequence,
            amount=fields.amount,
            direction=fields.direction,
            category=fields.category,
            description=fields.description,
            opening_balance=opening,
            closing_balance=closing,
            entry_date=fields.entry_date or utcnow(),
            reference=fields.reference,
            state=EntryState.PENDING,
        )
        self.entries.add(entry)
        self._write_balance(account, closing)
        entry.state = EntryState.COMMITTED
        self.db.flush()
        return entry

    def apply(
        self, account_id: str, user_id: str, request: EntryCreate
    ) -> LedgerEntry:
        """
        Apply a new credit or debit to an account.

        Raises ValidationError for a bad amount, direction or
        category, NotFoundError when the account is missing,
        inactive or not owned by user_id, and InsufficiencyError
        when a debit exceeds the balance. Nothing is written on
        any of these.
        """
        fields = validate_entry(request)
        self._require_account(account_id, user_id)

        def operation():
            account = self.accounts.lock_for_update(account_id)
            if not account or not account.is_active or account.user_id != user_id:
                raise NotFoundError("Account not found", {"account_id": account_id})
            return self._apply_to(account, user_id, fields)

        entry = self._run_write(account_id, operation, "apply")
        logger.info(
            "Entry %s applied to account %s: %s %s | balance %s -> %s",
            entry.id, account_id, entry.direction.value, entry.amount,
            entry.opening_balance, entry.closing_balance,
        )
        return entry

    def post_opening_balance(
        self, account: Account, amount: Decimal
    ) -> LedgerEntry:
        """
        Record a new account's starting balance as its first entry.

        Runs inside the caller's unit of work; the account is not
        visible to anyone else until the caller commits.
        """
        fields = EntryFields(
            amount=amount,
            direction=EntryDirection.CREDIT,
            category=OPENING_BALANCE_CATEGORY,
            description="Opening balance",
        )
        return self._apply_to(account, account.user_id, fields)

    # --- Amend ---

    def amend(
        self, entry_id: str, user_id: str, request: EntryAmend
    ) -> LedgerEntry:
        """
        Replace an entry's amount, direction and category.

        The old effect is undone against the account's current
        balance and the new one applied to the result. The amended
        entry keeps its place in the account's history; it and every
        entry applied after it get recomputed snapshots. Rejected
        without changes if the final balance would be negative, or if
        any recomputed balance would reach the money limit.
        """
        fields = validate_entry(request)
        account_id = self._require_entry(entry_id, user_id).account_id

        def operation():
            entry = self._require_entry(entry_id, user_id)
            account = self.accounts.lock_for_update(account_id)
            if not account or account.user_id != user_id:
                raise NotFoundError("Account not found", {"account_id": account_id})

            current = coerce_decimal(account.current_balance)
            old_amount = coerce_decimal(entry.amount)
            without_entry = shift_balance(
                current, old_amount, entry.direction.reversed
            )
            final = shift_balance(without_entry, fields.amount, fields.direction)
            if final < ZERO:
                logger.warning(
                    "Rejected amendment of entry %s: balance would be %s",
                    entry_id, final,
                )
                raise InsufficiencyError(current, fields.amount)
            check_balance_limit(final, fields.amount)

            old = (entry.direction.value, old_amount)
            entry.amount = fields.amount
            entry.direction = fields.direction
            entry.category = fields.category
            if fields.description is not None:
                entry.description = fields.description
            if fields.entry_date is not None:
                entry.entry_date = fields.entry_date
            if fields.reference is not None:
                entry.reference = fields.reference
            entry.closing_balance = shift_balance(
                coerce_decimal(entry.opening_balance), fields.amount, fields.direction
            )
            check_balance_limit(entry.closing_balance, fields.amount)

            self._rethread(account_id, entry.sequence, entry.closing_balance, final)
            self._write_balance(account, final)
            return entry, old, current, final

        entry, old, before, after = self._run_write(account_id, operation, "amend")
        logger.info(
            "Entry %s amended: %s %s -> %s %s | balance %s -> %s",
            entry_id, old[0], old[1], entry.direction.value, entry.amount,
            before, after,
        )
        return entry

    # --- Remove ---

    def remove(self, entry_id: str, user_id: str) -> RemovalResult:
        """
        Delete an entry and reverse its effect on the account.

        If the account is missing or inactive the entry is still
        deleted and no balance changes. Removing a credit that the
        balance no longer covers raises InsufficiencyError.
        """
        account_id = self._require_entry(entry_id, user_id).account_id

        def operation():
            entry = self._require_entry(entry_id, user_id)
            account = self.accounts.lock_for_update(account_id)

            if not account or not account.is_active or account.user_id != user_id:
                self.entries.delete(entry)
                logger.warning(
                    "Entry %s removed without a balance update: account %s "
                    "is missing or inactive", entry_id, account_id,
                )
                return RemovalResult(removed_entry_id=entry_id, new_balance=None)

            current = coerce_decimal(account.current_balance)
            new_balance = calculate_new_balance(
                current, coerce_decimal(entry.amount), entry.direction.reversed
            )
            sequence = entry.sequence
            opening = coerce_decimal(entry.opening_balance)

            self.entries.delete(entry)
            self._rethread(account_id, sequence, opening, new_balance)
            self._write_balance(account, new_balance)
            logger.info(
                "Entry %s removed from account %s | balance %s -> %s",
                entry_id, account_id, current, new_balance,
            )
            return RemovalResult(removed_entry_id=entry_id, new_balance=new_balance)

        return self._run_write(account_id, operation, "remove")

    # --- Statement ---

    def list_for_account(
        self,
        account_id: str,
        user_id: str,
        query: StatementQuery | None = None,
    ) -> Statement:
        """
        One page of an account's statement with its aggregates.

        The page, pagination metadata, summary and current balance
        are read in the same session so they describe one ledger
        state.
        """
        query = query or StatementQuery.from_params()
        account = self._require_account(account_id, user_id)

        entries = self.entries.find_page(account_id, user_id, query)
        total_count = self.entries.count(account_id, user_id, query)
        summary = self.entries.summarize(account_id, user_id, query)

        return Statement(
            entries=entries,
            pagination=PaginationMeta.build(query.page, total_count),
            summary=summary,
            current_balance=coerce_decimal(account.current_balance),
        )

    # --- Repair ---

    def reconcile(self, account_id: str, user_id: str) -> ReconciliationResult:
        """
        Reset an account's balance to its last entry's closing balance.

        The corrective tool for a partial dual write: the ledger
        rows are authoritative. Inactive accounts can be reconciled.
        """
        def operation():
            account = self.accounts.lock_for_update(account_id)
            if not account or account.user_id != user_id:
                raise NotFoundError("Account not found", {"account_id": account_id})

            previous = coerce_decimal(account.current_balance)
            latest = self.entries.latest_committed(account_id)
            reconciled = coerce_decimal(latest.closing_balance) if latest else ZERO

            if reconciled != previous:
                logger.warning(
                    "Reconciled account %s: balance %s -> %s",
                    account_id, previous, reconciled,
                )
                self._write_balance(account, reconciled)

            return ReconciliationResult(
                account_id=account_id,
                previous_balance=previous,
                reconciled_balance=reconciled,
                corrected=reconciled != previous,
            )

        return self._run_write(account_id, operation, "reconcile")

    def _resolve_pending(self, entry_id: str, account_id: str) -> EntryState | None:
        entry = self.db.get(LedgerEntry, entry_id)
        if not entry or entry.state != EntryState.PENDING:
            return None

        account = self.accounts.lock_for_update(account_id)
        if not account:
            entry.state = EntryState.REVERTED
            self.db.flush()
            return EntryState.REVERTED

        # The balance that followed this entry: the next entry's
        # opening balance, or the account's balance if none came after.
        following = self.entries.first_committed_after(account_id, entry.sequence)
        if following:
            balance_after = coerce_decimal(following.opening_balance)
        else:
            balance_after = coerce_decimal(account.current_balance)

        if balance_after == coerce_decimal(entry.closing_balance):
            entry.state = EntryState.COMMITTED
        elif balance_after == coerce_decimal(entry.opening_balance):
            entry.state = EntryState.REVERTED
        else:
            return EntryState.PENDING
        self.db.flush()
        return entry.state

    def recover_pending(self) -> RecoveryReport:
        """
        Resolve entries left PENDING by an interrupted write.

        Writes commit the entry and its balance change together, so on a
        transactional database no PENDING row survives a commit. The sweep
        is for stores that persist each write on its own.

        PENDING -> COMMITTED when the balance write landed,
        PENDING -> REVERTED when it never did. Entries matching
        neither stay PENDING and are reported as unresolved.
        """
        report = RecoveryReport()
        pending = [(e.id, e.account_id) for e in self.entries.pending()]
        # Nothing is held between sweeps of different accounts
        self.db.rollback()

        for entry_id, account_id in pending:
            outcome = self._run_write(
                account_id,
                partial(self._resolve_pending, entry_id, account_id),
                "recover",
            )
            if outcome == EntryState.COMMITTED:
                report.committed.append(entry_id)
            elif outcome == EntryState.REVERTED:
                report.reverted.append(entry_id)
            elif outcome == EntryState.PENDING:
                report.unresolved.append(entry_id)
                logger.error(
                    "Pending entry %s on account %s matches neither side of "
                    "its balance change; reconcile the account",
                    entry_id, account_id,
                )

        if pending:
            logger.info(
                "Pending-entry recovery: %d committed, %d reverted, %d unresolved",
                len(report.committed), len(report.reverted), len(report.unresolved),
            )
        return report
