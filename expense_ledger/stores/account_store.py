"""SQLAlchemy-backed store for bank accounts."""

from sqlalchemy import String, cast, select, func, or_
from sqlalchemy.orm import Session

from expense_ledger.models.account import Account
from expense_ledger.domain.query import AccountQuery

SORT_COLUMNS = {
    "created_at": Account.created_at,
    "current_balance": Account.current_balance,
    "bank_name": Account.bank_name,
    "account_type": Account.account_type,
}


def like_pattern(text: str) -> str:
    """Literal substring pattern for LIKE, with wildcards escaped."""
    escaped = (
        text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


class AccountStore:
    """
    Persistence for Account rows.

    The store only flushes. Whoever owns the unit of work
    (the ledger engine or the account service) commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, account: Account) -> Account:
        self.db.add(account)
        self.db.flush()
        return account

    def get_for_owner(self, account_id: str, user_id: str) -> Account | None:
        """Find an active account scoped to its owner."""
        return self.db.execute(
            select(Account).where(
                Account.id == account_id,
                Account.user_id == user_id,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()

    def lock_for_update(self, account_id: str) -> Account | None:
        """
        Re-read an account for a balance change.

        populate_existing discards whatever the session cached
        before the caller took the account lock. FOR UPDATE is
        a no-op on SQLite and a row lock elsewhere.
        """
        return self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def soft_delete(self, account: Account) -> Account:
        account.is_active = False
        self.db.flush()
        return account

    def _criteria(self, user_id: str, query: AccountQuery) -> list:
        criteria = [Account.user_id == user_id, Account.is_active.is_(True)]
        if query.search:
            pattern = like_pattern(query.search)
            criteria.append(or_(
                cast(Account.bank_name, String).ilike(pattern, escape="\\"),
                Account.account_number.ilike(pattern, escape="\\"),
            ))
        if query.bank_name is not None:
            criteria.append(Account.bank_name == query.bank_name)
        if query.account_type is not None:
            criteria.append(Account.account_type == query.account_type)
        return criteria

    def find_page(self, user_id: str, query: AccountQuery) -> list[Account]:
        column = SORT_COLUMNS[query.sort_by]
        order = column.desc() if query.descending else column.asc()
        tiebreak = Account.id.desc() if query.descending else Account.id.asc()
        accounts = self.db.execute(
            select(Account)
            .where(*self._criteria(user_id, query))
            .order_by(order, tiebreak)
            .offset(query.page.offset)
            .limit(query.page.limit)
        ).scalars().all()
        return list(accounts)

    def count(self, user_id: str, query: AccountQuery) -> int:
        return self.db.execute(
            select(func.count())
            .select_from(Account)
            .where(*self._criteria(user_id, query))
        ).scalar_one()
