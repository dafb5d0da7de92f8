"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from practice_ledger.api.dependencies import get_current_user_id, get_today
from practice_ledger.api.main import create_app
from practice_ledger.infrastructure.database.models import (
    Base,
    CreditCardInvoiceRow,
    CreditCardRow,
    CreditCardTransactionRow,
    PatientPaymentRow,
)
from practice_ledger.infrastructure.database.session import get_db
from practice_ledger.infrastructure.store.sql import SqlDataStore

USER_ID = "user_1"
OTHER_USER_ID = "user_2"
TODAY = date(2024, 1, 10)

# In-memory database shared across connections
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db: Session) -> SqlDataStore:
    return SqlDataStore(db)


@pytest.fixture
def client(db: Session) -> TestClient:
    """FastAPI test client on the test database, authenticated as USER_ID on TODAY"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def card(db: Session) -> CreditCardRow:
    """Card closing on the 10th, due on the 20th"""
    row = CreditCardRow(
        id="card_1",
        user_id=USER_ID,
        name="Visa",
        limit_amount=Decimal("5000.00"),
        current_balance=Decimal("0"),
        closing_day=10,
        due_day=20,
    )
    db.add(row)
    db.commit()
    return row


def add_card_transaction(db: Session, amount: str, on: date, card_id: str = "card_1", user_id: str = USER_ID):
    row = CreditCardTransactionRow(
        user_id=user_id,
        credit_card_id=card_id,
        amount=Decimal(amount),
        description="Purchase" if Decimal(amount) > 0 else "Payment",
        date=on,
    )
    db.add(row)
    db.commit()
    return row


def add_invoice(db: Session, cycle_start: date, cycle_end: date, total_due: str, paid_amount: str, card_id: str = "card_1"):
    row = CreditCardInvoiceRow(
        user_id=USER_ID,
        credit_card_id=card_id,
        cycle_start=cycle_start,
        cycle_end=cycle_end,
        due_date=cycle_end,
        total_due=Decimal(total_due),
        paid_amount=Decimal(paid_amount),
        status="closed",
    )
    db.add(row)
    db.commit()
    return row


def add_template(db: Session, **overrides) -> PatientPaymentRow:
    values = dict(
        id="template_1",
        user_id=USER_ID,
        patient_id="patient_1",
        amount=Decimal("200.00"),
        payment_date=date(2024, 1, 5),
        payment_method="pix",
        description="Monthly therapy",
        status="paid",
        is_recurring=True,
        recurring_frequency="monthly",
        recurring_day=5,
        recurring_until=date(2024, 3, 5),
    )
    values.update(overrides)
    row = PatientPaymentRow(**values)
    db.add(row)
    db.commit()
    return row
