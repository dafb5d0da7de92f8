"""Unit tests for billing cycle math and invoice totals"""

from datetime import date
from decimal import Decimal

import pytest

from practice_ledger.domain.billing import (
    billing_stats,
    compute_cycle,
    invoice_status,
    outstanding_balance,
    sum_payments,
    sum_purchases,
    total_due,
)
from practice_ledger.domain.exceptions import ValidationError
from practice_ledger.domain.models import CardTransaction, Invoice


def _txn(amount: str, on: date = date(2024, 1, 5)) -> CardTransaction:
    return CardTransaction(
        id=f"tx_{amount}",
        user_id="user_1",
        credit_card_id="card_1",
        amount=Decimal(amount),
        description="Test",
        date=on,
    )


def _invoice(total: str, paid: str, due: date = date(2024, 2, 20)) -> Invoice:
    return Invoice(
        id="inv_1",
        user_id="user_1",
        credit_card_id="card_1",
        cycle_start=date(2023, 12, 11),
        cycle_end=date(2024, 1, 10),
        due_date=due,
        purchases_total=Decimal(total),
        payments_total=Decimal("0"),
        previous_balance=Decimal("0"),
        total_due=Decimal(total),
        paid_amount=Decimal(paid),
        status="closed",
    )


def test_compute_cycle_rolls_back_across_year():
    """January cycle starts in the previous December and is due in February"""
    cycle = compute_cycle(closing_day=10, due_day=15, cycle_month="2024-01")

    assert cycle.cycle_start == date(2023, 12, 11)
    assert cycle.cycle_end == date(2024, 1, 10)
    assert cycle.due_date == date(2024, 2, 15)


def test_compute_cycle_rolls_forward_across_year():
    cycle = compute_cycle(closing_day=5, due_day=12, cycle_month="2024-12")

    assert cycle.cycle_start == date(2024, 11, 6)
    assert cycle.cycle_end == date(2024, 12, 5)
    assert cycle.due_date == date(2025, 1, 12)


@pytest.mark.parametrize("closing_day", range(1, 29))
@pytest.mark.parametrize("cycle_month", ["2023-03", "2024-01", "2024-02", "2024-12"])
def test_compute_cycle_ordering(closing_day, cycle_month):
    cycle = compute_cycle(closing_day=closing_day, due_day=closing_day, cycle_month=cycle_month)

    assert cycle.cycle_start < cycle.cycle_end < cycle.due_date
    assert cycle.cycle_end.strftime("%Y-%m") == cycle_month


def test_compute_cycle_does_not_clamp_short_months():
    """Closing day 31 in February overflows into March"""
    cycle = compute_cycle(closing_day=31, due_day=5, cycle_month="2024-02")

    assert cycle.cycle_start == date(2024, 2, 1)  # Jan 32nd
    assert cycle.cycle_end == date(2024, 3, 2)


def test_compute_cycle_rejects_malformed_month():
    with pytest.raises(ValidationError) as exc_info:
        compute_cycle(10, 20, "2024/01")
    assert exc_info.value.field == "cycle_month"


@pytest.mark.parametrize("cycle_month", ["9999-12", "0001-01"])
def test_compute_cycle_rejects_months_at_calendar_edges(cycle_month):
    """The previous or following month would fall outside the supported years"""
    with pytest.raises(ValidationError) as exc_info:
        compute_cycle(10, 20, cycle_month)
    assert exc_info.value.field == "cycle_month"


def test_sums_split_purchases_and_payments():
    txns = [_txn("100"), _txn("50"), _txn("-30"), _txn("-0.5")]

    assert sum_purchases(txns) == Decimal("150.00")
    assert sum_payments(txns) == Decimal("30.50")


def test_total_due_is_not_floored():
    """Overpayment leaves a negative total, i.e. a credit"""
    assert total_due(Decimal("100"), Decimal("0"), Decimal("150")) == Decimal("-50.00")
    assert total_due(Decimal("150"), Decimal("50"), Decimal("30")) == Decimal("170.00")


def test_outstanding_balance_floors_at_zero():
    assert outstanding_balance(_invoice("200", "150")) == Decimal("50.00")
    assert outstanding_balance(_invoice("200", "250")) == Decimal("0.00")
    assert outstanding_balance(None) == Decimal("0.00")


def test_billing_stats_floors_total_to_pay():
    stats = billing_stats([_txn("20"), _txn("-100")], previous_invoice=None)

    assert stats.purchases_total == Decimal("20.00")
    assert stats.payments_total == Decimal("100.00")
    assert stats.total_to_pay == Decimal("0.00")


def test_invoice_status():
    today = date(2024, 3, 1)

    assert invoice_status(_invoice("200", "200"), today) == "paid"
    assert invoice_status(_invoice("200", "50", due=date(2024, 2, 20)), today) == "overdue"
    assert invoice_status(_invoice("200", "50", due=date(2024, 3, 20)), today) == "pending"
    assert invoice_status(_invoice("-10", "0"), today) == "paid"
