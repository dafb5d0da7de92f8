"""Billing cycle math and invoice totals - core business logic for card invoices"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from practice_ledger.domain.exceptions import ValidationError
from practice_ledger.domain.models import BillingCycle, BillingStats, CardTransaction, Invoice
from practice_ledger.utils.date_utils import overflow_date, parse_cycle_month

CENT = Decimal("0.01")
ZERO = Decimal("0")


def money(value) -> Decimal:
    """Round any numeric value to cents"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


def compute_cycle(closing_day: int, due_day: int, cycle_month: str) -> BillingCycle:
    """
    Compute the billing window that closes in cycle_month.

    - cycle_end:   closing_day of cycle_month
    - cycle_start: closing_day + 1 of the previous month
    - due_date:    due_day of the following month

    Days are not clamped: a closing day past the end of a short month
    spills into the next month, like native date arithmetic does.

    Example:
        closing 10, due 15, "2024-01" -> 2023-12-11 .. 2024-01-10, due 2024-02-15
    """
    try:
        year, month = parse_cycle_month(cycle_month)
        return BillingCycle(
            cycle_start=overflow_date(year, month - 1, closing_day + 1),
            cycle_end=overflow_date(year, month, closing_day),
            due_date=overflow_date(year, month + 1, due_day),
        )
    except (ValueError, OverflowError) as e:
        # Also covers cycles that fall outside the supported years (0001-9999)
        raise ValidationError(str(e), field="cycle_month") from e


def sum_purchases(transactions: Iterable[CardTransaction]) -> Decimal:
    return money(sum((t.amount for t in transactions if t.is_purchase), ZERO))


def sum_payments(transactions: Iterable[CardTransaction]) -> Decimal:
    """Payments are stored negative; the total is reported as a positive amount"""
    return money(sum((-t.amount for t in transactions if t.is_payment), ZERO))


def outstanding_balance(invoice: Optional[Invoice]) -> Decimal:
    """What is still owed on an invoice, never negative"""
    if invoice is None:
        return ZERO.quantize(CENT)
    return money(max(ZERO, invoice.total_due - (invoice.paid_amount or ZERO)))


def total_due(purchases_total: Decimal, previous_balance: Decimal, payments_total: Decimal) -> Decimal:
    """Not floored: a negative total is a credit in the cardholder's favour"""
    return money(purchases_total + previous_balance - payments_total)


def billing_stats(
    transactions: Iterable[CardTransaction],
    previous_invoice: Optional[Invoice],
) -> BillingStats:
    """Totals for a billing window as shown before the invoice is closed"""
    transactions = list(transactions)
    purchases = sum_purchases(transactions)
    payments = sum_payments(transactions)
    previous = outstanding_balance(previous_invoice)

    return BillingStats(
        purchases_total=purchases,
        payments_total=payments,
        previous_balance=previous,
        total_to_pay=max(ZERO.quantize(CENT), total_due(purchases, previous, payments)),
    )


def invoice_status(invoice: Invoice, today: Optional[date] = None) -> str:
    """
    Derive the display status of an invoice.

    Returns "paid" once nothing is outstanding, "overdue" past the due date,
    otherwise "pending".
    """
    today = today or date.today()
    if invoice.total_due - (invoice.paid_amount or ZERO) <= 0:
        return "paid"
    if invoice.due_date < today:
        return "overdue"
    return "pending"
