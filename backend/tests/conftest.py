"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid

from ledgerline.database import Base
from ledgerline.dependencies import get_db
from ledgerline.main import app
from ledgerline.models.category import Category, UNCATEGORIZED
from ledgerline.models.transaction import Transaction, ClassificationSource
from ledgerline.schemas.import_file import ColumnMapping
from ledgerline.services.deduplication_service import (
    generate_transaction_fingerprint,
    hash_fingerprint,
)
from ledgerline.services.merchant_service import generate_merchant_key


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return "user-1"


@pytest.fixture
def mapping():
    """Mapping for the Date/Description/Amount export used across tests."""
    return ColumnMapping(posted_date="Date", description="Description", amount="Amount")


@pytest.fixture
def netflix_rows():
    return [
        {"Date": "01/15/2024", "Description": "NETFLIX.COM 8885551234", "Amount": "-15.99"},
        {"Date": "02/15/2024", "Description": "NETFLIX.COM 8885551234", "Amount": "-15.99"},
    ]


@pytest.fixture
def uncategorized_category(db_session):
    """The system fallback category."""
    category = Category(id=str(uuid.uuid4()), name=UNCATEGORIZED, is_system=True)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def sample_category(db_session, user_id):
    """A user-owned category."""
    category = Category(id=str(uuid.uuid4()), user_id=user_id, name="Streaming")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def make_transaction(db_session, user_id):
    """Factory that stores a transaction with a real fingerprint."""
    def _make(
        posted_date=date(2024, 1, 15),
        amount=Decimal("-15.99"),
        description="NETFLIX.COM 8885551234",
        account_id=None,
        category_id=None,
        classification_source=ClassificationSource.default,
        owner=None,
    ):
        fingerprint = generate_transaction_fingerprint(posted_date, amount, description, account_id)
        txn = Transaction(
            id=str(uuid.uuid4()),
            user_id=owner or user_id,
            account_id=account_id,
            posted_date=posted_date,
            description=description,
            amount=amount,
            merchant_key=generate_merchant_key(description),
            fingerprint=fingerprint,
            fingerprint_hash=hash_fingerprint(fingerprint),
            category_id=category_id,
            classification_source=classification_source,
        )
        db_session.add(txn)
        db_session.commit()
        db_session.refresh(txn)
        return txn
    return _make
