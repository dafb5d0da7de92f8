"""Schedule expansion for recurring patient payments"""

from datetime import date, timedelta
from typing import Iterator, Optional

from practice_ledger.domain.models import PatientPayment
from practice_ledger.utils.date_utils import add_months, clamp_day

FREQUENCIES = ("weekly", "monthly")


def next_payment_date(current: date, frequency: str, recurring_day: Optional[int] = None) -> date:
    """
    Advance one period from current.

    - weekly:  current + 7 days
    - monthly: recurring_day of the following month, clamped to its length
               (day 31 lands on the 30th in a 30-day month)
    """
    if frequency == "weekly":
        return current + timedelta(weeks=1)
    if frequency != "monthly":
        raise ValueError(f"Unsupported recurring frequency: {frequency!r}")

    following = add_months(current.replace(day=1), 1)
    return clamp_day(following.year, following.month, recurring_day or current.day)


def schedule_end(template: PatientPayment, today: date, lookahead_months: int) -> date:
    """The lookahead horizon, or the template's end date when that comes first"""
    horizon = add_months(today, lookahead_months)
    if template.recurring_until and template.recurring_until < horizon:
        return template.recurring_until
    return horizon


def candidate_dates(template: PatientPayment, today: date, lookahead_months: int = 6) -> Iterator[date]:
    """
    Yield the dates a template should have payments on, after its anchor,
    up to and including the schedule end.

    The anchor itself is the template row and is never yielded. The
    per-run cap is applied by the caller to the instances it emits.
    """
    end = schedule_end(template, today, lookahead_months)
    current = next_payment_date(template.payment_date, template.recurring_frequency, template.recurring_day)

    while current <= end:
        yield current
        current = next_payment_date(current, template.recurring_frequency, template.recurring_day)


def build_instance(template: PatientPayment, payment_date: date) -> PatientPayment:
    """Concrete pending payment generated from a template"""
    return PatientPayment(
        id=None,
        user_id=template.user_id,
        patient_id=template.patient_id,
        amount=template.amount,
        payment_date=payment_date,
        payment_method=template.payment_method,
        description=template.description,
        status="pending",
        is_recurring=False,
        parent_payment_id=template.id,
    )
