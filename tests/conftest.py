"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Each test starts from empty tables.
"""

import os

# Must be set before fx_ledger.config is imported
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["RETRY_BACKOFF_SECONDS"] = "0"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from fx_ledger.main import app
from fx_ledger.models.base import Base, build_engine, get_db
from fx_ledger.services.account_store import AccountStore


# SQLite for tests: no external database needed. build_engine
# applies the same BEGIN IMMEDIATE setup the app uses, so
# threaded tests see real writer serialization.
TEST_DATABASE_URL = os.environ["DATABASE_URL"]

engine = build_engine(TEST_DATABASE_URL)

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
    """
    Session factory for tests that run work on several threads.
    Each thread must open its own session.
    """
    return TestSessionLocal


@pytest.fixture
def seed_accounts(db_session):
    """
    Return a helper that creates accounts with opening balances
    and commits them.

        seed_accounts(TTD="1000", USD="0")
    """
    def _seed(**balances):
        store = AccountStore(db_session)
        for currency, balance in balances.items():
            store.create_account(currency, Decimal(balance))
        db_session.commit()

    return _seed


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses the
    test session. The client is not entered as a context
    manager, so startup bootstrap does not run.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
