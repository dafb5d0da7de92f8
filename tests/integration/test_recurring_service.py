"""Service tests for recurring payment generation"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.orm import Session

from conftest import OTHER_USER_ID, USER_ID, add_template
from practice_ledger.domain.exceptions import DataStoreError
from practice_ledger.infrastructure.database.models import PatientPaymentRow
from practice_ledger.infrastructure.store.sql import SqlDataStore
from practice_ledger.services.recurring import (
    DailyRunGuard,
    RecurringPaymentGenerator,
    initialize_recurring_payments,
)

TODAY = date(2024, 1, 10)


@pytest.fixture
def generator(store: SqlDataStore) -> RecurringPaymentGenerator:
    return RecurringPaymentGenerator(store, template_limit=50, lookahead_months=6, max_occurrences=24)


def _generated(db: Session, user_id: str = USER_ID):
    db.expire_all()
    return (
        db.query(PatientPaymentRow)
        .filter(PatientPaymentRow.user_id == user_id, PatientPaymentRow.parent_payment_id.isnot(None))
        .order_by(PatientPaymentRow.payment_date)
        .all()
    )


async def test_generate_monthly_until_end_date(generator, db):
    """Anchor 2024-01-05 until 2024-03-05 generates February and March only"""
    add_template(db)

    report = await generator.generate(USER_ID, today=TODAY)

    rows = _generated(db)
    assert report.ok
    assert report.templates_processed == 1
    assert [r.payment_date for r in rows] == [date(2024, 2, 5), date(2024, 3, 5)]
    assert all(r.status == "pending" for r in rows)
    assert all(r.is_recurring is False for r in rows)
    assert all(r.parent_payment_id == "template_1" for r in rows)
    assert all(r.amount == Decimal("200.00") for r in rows)


async def test_generate_twice_creates_no_duplicates(generator, db):
    add_template(db, recurring_until=None)

    first = await generator.generate(USER_ID, today=TODAY)
    second = await generator.generate(USER_ID, today=TODAY)

    rows = _generated(db)
    dates = [r.payment_date for r in rows]
    assert len(first.created) == 6
    assert second.created == []
    assert second.skipped_existing == 6
    assert len(dates) == len(set(dates)) == 6


async def test_generate_does_not_touch_user_modified_instances(generator, db):
    add_template(db)
    await generator.generate(USER_ID, today=TODAY)

    paid = _generated(db)[0]
    paid.status = "paid"
    db.commit()

    await generator.generate(USER_ID, today=TODAY)

    rows = _generated(db)
    assert len(rows) == 2
    assert rows[0].status == "paid"


async def test_generate_clamps_day_31(generator, db):
    """recurring_day 31 lands on April 30th"""
    add_template(
        db,
        payment_date=date(2024, 3, 31),
        recurring_day=31,
        recurring_until=date(2024, 5, 31),
    )

    await generator.generate(USER_ID, today=date(2024, 4, 1))

    assert [r.payment_date for r in _generated(db)] == [date(2024, 4, 30), date(2024, 5, 31)]


async def test_generate_weekly_is_capped(generator, db):
    add_template(
        db,
        payment_date=date(2024, 1, 1),
        recurring_frequency="weekly",
        recurring_day=None,
        recurring_until=None,
    )

    report = await generator.generate(USER_ID, today=date(2024, 1, 1))

    assert len(report.created) == 24
    assert len(_generated(db)) == 24


async def test_long_running_template_catches_up_to_lookahead(generator, db):
    """Weekly since 2023-01-02: each run adds up to 24 new dates until the horizon is filled"""
    add_template(
        db,
        payment_date=date(2023, 1, 2),
        recurring_frequency="weekly",
        recurring_day=None,
        recurring_until=None,
    )

    reports = [await generator.generate(USER_ID, today=TODAY) for _ in range(5)]

    rows = _generated(db)
    assert [len(r.created) for r in reports] == [24, 24, 24, 7, 0]
    assert reports[3].skipped_existing == 72
    assert rows[-1].payment_date == date(2024, 7, 8)
    assert any(r.payment_date >= TODAY for r in rows)
    assert len(rows) == 79


async def test_templates_of_same_patient_do_not_double_book(generator, db):
    add_template(db, id="template_1")
    add_template(db, id="template_2", amount=Decimal("50.00"))

    report = await generator.generate(USER_ID, today=TODAY)

    dates = [r.payment_date for r in _generated(db)]
    assert len(dates) == len(set(dates)) == 2
    assert report.skipped_existing == 2


async def test_generate_is_scoped_to_user(generator, db):
    add_template(db)
    add_template(db, id="template_other", user_id=OTHER_USER_ID)

    await generator.generate(USER_ID, today=TODAY)

    assert len(_generated(db)) == 2
    assert _generated(db, OTHER_USER_ID) == []


async def test_invalid_template_is_reported_and_others_continue(generator, db):
    add_template(db, id="template_bad", patient_id="patient_2", recurring_frequency="yearly")
    add_template(db, id="template_good")

    report = await generator.generate(USER_ID, today=TODAY)

    assert not report.ok
    assert [e.subject_id for e in report.errors] == ["template_bad"]
    assert report.errors[0].step == "template"
    assert len(_generated(db)) == 2


async def test_load_failure_returns_report_instead_of_raising(generator):
    with patch.object(generator.store, "select", AsyncMock(side_effect=DataStoreError("boom"))):
        report = await generator.generate(USER_ID, today=TODAY)

    assert report.templates_processed == 0
    assert report.created == []
    assert [e.step for e in report.errors] == ["load"]


async def test_batch_failure_falls_back_to_single_rows(generator, db):
    add_template(db)
    real_insert = generator.store.insert
    calls = []

    async def flaky_insert(table, rows):
        calls.append(len(rows))
        if len(rows) > 1:
            raise DataStoreError("conflict")
        if rows[0]["payment_date"] == date(2024, 3, 5):
            raise DataStoreError("conflict")
        return await real_insert(table, rows)

    with patch.object(generator.store, "insert", flaky_insert):
        report = await generator.generate(USER_ID, today=TODAY)

    assert calls == [2, 1, 1]
    assert [p.payment_date for p in report.created] == [date(2024, 2, 5)]
    assert [e.step for e in report.errors] == ["insert"]


async def test_initialize_runs_once_per_day(generator, db):
    add_template(db, recurring_until=None)
    guard = DailyRunGuard()

    first = await initialize_recurring_payments(generator, guard, USER_ID, today=TODAY)
    second = await initialize_recurring_payments(generator, guard, USER_ID, today=TODAY)
    next_day = await initialize_recurring_payments(generator, guard, USER_ID, today=date(2024, 1, 11))

    assert first is not None and len(first.created) == 6
    assert second is None
    assert next_day is not None
