"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from expense_ledger.main import app
from expense_ledger.models.base import Base, get_db
from expense_ledger.models.account import Account
from expense_ledger.models.enums import EntryDirection, EntryState
from expense_ledger.models.ledger_entry import LedgerEntry


# File-backed SQLite so threads with their own sessions
# see each other's commits.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    """Session maker for tests that need one session per thread."""
    return TestSessionLocal


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses the
    test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def check_ledger():
    """
    Return a checker for an account's ledger invariants.

    Walks the committed entries in application order and asserts
    the entry arithmetic, the chain of snapshots, non-negativity
    and that the account balance equals the last closing balance.
    """
    def check(session, account_id):
        session.expire_all()
        account = session.get(Account, account_id)
        entries = session.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.account_id == account_id,
                LedgerEntry.state == EntryState.COMMITTED,
            )
            .order_by(LedgerEntry.sequence)
        ).scalars().all()

        previous_closing = Decimal("0")
        for entry in entries:
            delta = entry.closing_balance - entry.opening_balance
            if entry.direction == EntryDirection.CREDIT:
                assert delta == entry.amount
            else:
                assert delta == -entry.amount
            assert entry.opening_balance == previous_closing
            assert entry.closing_balance >= 0
            previous_closing = entry.closing_balance

        assert account.current_balance == previous_closing
        assert account.current_balance >= 0
        return list(entries)

    return check
