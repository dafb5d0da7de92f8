"""SQLAlchemy ORM models mirroring the hosted backend tables"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class CreditCardRow(Base):
    """Credit card with cached balance"""

    __tablename__ = "credit_cards"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    limit_amount = Column(Numeric(12, 2), nullable=False)
    current_balance = Column(Numeric(12, 2), nullable=False, default=0)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    transactions = relationship("CreditCardTransactionRow", back_populates="card", cascade="all, delete-orphan")
    invoices = relationship("CreditCardInvoiceRow", back_populates="card", cascade="all, delete-orphan")


class CreditCardTransactionRow(Base):
    """Purchase (positive) or payment (negative) on a card"""

    __tablename__ = "credit_card_transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Text, nullable=False, index=True)
    credit_card_id = Column(String(36), ForeignKey("credit_cards.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    installments = Column(Integer, nullable=False, default=1)
    current_installment = Column(Integer, nullable=False, default=1)
    category_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    card = relationship("CreditCardRow", back_populates="transactions")


class CreditCardInvoiceRow(Base):
    """Closed invoice, one per card billing cycle"""

    __tablename__ = "credit_card_invoices"
    __table_args__ = (UniqueConstraint("credit_card_id", "cycle_start", "cycle_end", name="uq_invoice_cycle"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Text, nullable=False, index=True)
    credit_card_id = Column(String(36), ForeignKey("credit_cards.id", ondelete="CASCADE"), nullable=False)
    cycle_start = Column(Date, nullable=False)
    cycle_end = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    purchases_total = Column(Numeric(12, 2), nullable=False, default=0)
    payments_total = Column(Numeric(12, 2), nullable=False, default=0)
    previous_balance = Column(Numeric(12, 2), nullable=False, default=0)
    total_due = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(Text, nullable=False, default="open")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    card = relationship("CreditCardRow", back_populates="invoices")


class PatientPaymentRow(Base):
    """Patient payment; recurring templates and their generated instances share the table"""

    __tablename__ = "patient_payments"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Text, nullable=False, index=True)
    patient_id = Column(String(36), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(Text, nullable=True)
    recurring_until = Column(Date, nullable=True)
    recurring_day = Column(Integer, nullable=True)
    parent_payment_id = Column(String(36), ForeignKey("patient_payments.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AccountRow(Base):
    """Bank or cash account"""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    initial_balance = Column(Numeric(12, 2), nullable=False, default=0)
    current_balance = Column(Numeric(12, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class TransactionRow(Base):
    """Account income or expense"""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


MODELS_BY_TABLE = {
    model.__tablename__: model
    for model in (
        CreditCardRow,
        CreditCardTransactionRow,
        CreditCardInvoiceRow,
        PatientPaymentRow,
        AccountRow,
        TransactionRow,
    )
}
