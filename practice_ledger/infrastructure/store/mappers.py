"""Convert store rows to domain models and back"""

from decimal import Decimal
from typing import Any, Optional

from practice_ledger.domain.billing import money
from practice_ledger.domain.models import (
    Account,
    AccountTransaction,
    CardTransaction,
    CreditCard,
    Invoice,
    PatientPayment,
)
from practice_ledger.infrastructure.store.base import Row
from practice_ledger.utils.date_utils import to_date


def _decimal(value: Any) -> Decimal:
    return money(value if value is not None else 0)


def _optional_date(value: Any):
    return to_date(value) if value else None


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def to_card(row: Row) -> CreditCard:
    return CreditCard(
        id=str(row["id"]),
        user_id=row["user_id"],
        name=row["name"],
        limit_amount=_decimal(row.get("limit_amount")),
        current_balance=_decimal(row.get("current_balance")),
        closing_day=int(row["closing_day"]),
        due_day=int(row["due_day"]),
    )


def to_card_transaction(row: Row) -> CardTransaction:
    return CardTransaction(
        id=str(row["id"]),
        user_id=row["user_id"],
        credit_card_id=str(row["credit_card_id"]),
        amount=_decimal(row["amount"]),
        description=row.get("description") or "",
        date=to_date(row["date"]),
        installments=int(row.get("installments") or 1),
        current_installment=int(row.get("current_installment") or 1),
        category_id=_optional_str(row.get("category_id")),
    )


def to_invoice(row: Row) -> Invoice:
    return Invoice(
        id=_optional_str(row.get("id")),
        user_id=row["user_id"],
        credit_card_id=str(row["credit_card_id"]),
        cycle_start=to_date(row["cycle_start"]),
        cycle_end=to_date(row["cycle_end"]),
        due_date=to_date(row["due_date"]),
        purchases_total=_decimal(row.get("purchases_total")),
        payments_total=_decimal(row.get("payments_total")),
        previous_balance=_decimal(row.get("previous_balance")),
        total_due=_decimal(row.get("total_due")),
        paid_amount=_decimal(row.get("paid_amount")),
        status=row.get("status") or "open",
    )


def invoice_values(invoice: Invoice) -> Row:
    """Column values for inserting an invoice"""
    return {
        "user_id": invoice.user_id,
        "credit_card_id": invoice.credit_card_id,
        "cycle_start": invoice.cycle_start,
        "cycle_end": invoice.cycle_end,
        "due_date": invoice.due_date,
        "purchases_total": invoice.purchases_total,
        "payments_total": invoice.payments_total,
        "previous_balance": invoice.previous_balance,
        "total_due": invoice.total_due,
        "paid_amount": invoice.paid_amount,
        "status": invoice.status,
    }


def to_patient_payment(row: Row) -> PatientPayment:
    recurring_day = row.get("recurring_day")
    return PatientPayment(
        id=_optional_str(row.get("id")),
        user_id=row["user_id"],
        patient_id=str(row["patient_id"]),
        amount=_decimal(row["amount"]),
        payment_date=to_date(row["payment_date"]),
        payment_method=row.get("payment_method") or "",
        description=row.get("description"),
        status=row.get("status") or "pending",
        is_recurring=bool(row.get("is_recurring")),
        recurring_frequency=row.get("recurring_frequency"),
        recurring_until=_optional_date(row.get("recurring_until")),
        recurring_day=int(recurring_day) if recurring_day is not None else None,
        parent_payment_id=_optional_str(row.get("parent_payment_id")),
    )


def payment_values(payment: PatientPayment) -> Row:
    """Column values for inserting a generated payment"""
    return {
        "user_id": payment.user_id,
        "patient_id": payment.patient_id,
        "amount": payment.amount,
        "payment_date": payment.payment_date,
        "payment_method": payment.payment_method,
        "description": payment.description,
        "status": payment.status,
        "is_recurring": payment.is_recurring,
        "parent_payment_id": payment.parent_payment_id,
    }


def to_account(row: Row) -> Account:
    return Account(
        id=str(row["id"]),
        user_id=row["user_id"],
        name=row.get("name") or "",
        initial_balance=_decimal(row.get("initial_balance")),
        current_balance=_decimal(row.get("current_balance")),
    )


def to_account_transaction(row: Row) -> AccountTransaction:
    return AccountTransaction(
        id=str(row["id"]),
        account_id=str(row["account_id"]),
        amount=_decimal(row.get("amount")),
        type=row.get("type") or "expense",
    )
