"""Recurring patient payment generation"""

import logging
from datetime import date
from typing import Dict, List, Optional, Set, Tuple

from practice_ledger.config import settings
from practice_ledger.domain.exceptions import DataStoreError, ValidationError
from practice_ledger.domain.models import GenerationReport, OperationError, PatientPayment
from practice_ledger.domain.recurrence import build_instance, candidate_dates
from practice_ledger.domain.validation import validate_template
from practice_ledger.infrastructure.observability.logging import log_generation
from practice_ledger.infrastructure.observability.metrics import record_generation
from practice_ledger.infrastructure.store import mappers
from practice_ledger.infrastructure.store.base import PATIENT_PAYMENTS, DataStore, eq, is_null

logger = logging.getLogger(__name__)


class RecurringPaymentGenerator:
    """
    Expands recurring payment templates into pending payments.

    Safe to re-run: a date that already has a payment for the same patient is
    never filled twice. Failures never raise; they are logged and returned
    in the GenerationReport so one broken template does not block the rest.
    """

    def __init__(
        self,
        store: DataStore,
        template_limit: int | None = None,
        lookahead_months: int | None = None,
        max_occurrences: int | None = None,
    ):
        self.store = store
        self.template_limit = template_limit or settings.recurring_template_limit
        self.lookahead_months = lookahead_months or settings.recurring_lookahead_months
        self.max_occurrences = max_occurrences or settings.recurring_max_occurrences

    async def generate(self, user_id: str, today: Optional[date] = None) -> GenerationReport:
        """
        Generate missing payments for every template of a user.

        Flow:
        1. Load up to template_limit templates (is_recurring, no parent)
        2. Walk each template's schedule up to the lookahead horizon
        3. Skip dates that already hold a payment for the patient
        4. Insert everything in one batch, falling back to row-by-row
        """
        today = today or date.today()
        report = GenerationReport()

        try:
            rows = await self.store.select(
                PATIENT_PAYMENTS,
                [eq("user_id", user_id), eq("is_recurring", True), is_null("parent_payment_id")],
                order_by="payment_date",
                limit=self.template_limit,
            )
        except DataStoreError as e:
            logger.error(f"Error fetching recurring payments: {e}", extra={"user_id": user_id})
            report.errors.append(OperationError(subject_id=None, step="load", message=str(e)))
            self._finish(user_id, report)
            return report

        claimed: Set[Tuple[str, date]] = set()
        pending: List[PatientPayment] = []

        for row in rows:
            template = mappers.to_patient_payment(row)
            report.templates_processed += 1
            try:
                validate_template(template.recurring_frequency, template.recurring_day)
                pending.extend(await self._expand(template, today, claimed, report))
            except ValidationError as e:
                logger.warning(f"Skipping recurring template: {e}", extra={"template_id": template.id})
                report.errors.append(OperationError(subject_id=template.id, step="template", message=str(e)))
            except DataStoreError as e:
                logger.error(f"Error checking existing payment: {e}", extra={"template_id": template.id})
                report.errors.append(OperationError(subject_id=template.id, step="lookup", message=str(e)))

        if pending:
            report.created.extend(await self._insert(pending, report))

        self._finish(user_id, report)
        return report

    async def _expand(
        self,
        template: PatientPayment,
        today: date,
        claimed: Set[Tuple[str, date]],
        report: GenerationReport,
    ) -> List[PatientPayment]:
        """New instances for one template, at most max_occurrences per run"""
        instances = []
        for payment_date in candidate_dates(template, today, self.lookahead_months):
            if len(instances) >= self.max_occurrences:
                break
            key = (template.patient_id, payment_date)
            if key in claimed or await self._payment_exists(template, payment_date):
                report.skipped_existing += 1
                continue
            claimed.add(key)
            instances.append(build_instance(template, payment_date))
        return instances

    async def _payment_exists(self, template: PatientPayment, payment_date: date) -> bool:
        rows = await self.store.select(
            PATIENT_PAYMENTS,
            [
                eq("user_id", template.user_id),
                eq("patient_id", template.patient_id),
                eq("payment_date", payment_date),
            ],
            limit=1,
        )
        return bool(rows)

    async def _insert(self, payments: List[PatientPayment], report: GenerationReport) -> List[PatientPayment]:
        """One batch insert; on failure retry row by row so conflicts only cost their own row"""
        try:
            rows = await self.store.insert(PATIENT_PAYMENTS, [mappers.payment_values(p) for p in payments])
            return [mappers.to_patient_payment(row) for row in rows]
        except DataStoreError as e:
            logger.warning(f"Batch insert of recurring payments failed, retrying individually: {e}")

        created = []
        for payment in payments:
            try:
                rows = await self.store.insert(PATIENT_PAYMENTS, [mappers.payment_values(payment)])
                created.extend(mappers.to_patient_payment(row) for row in rows)
            except DataStoreError as e:
                logger.error(
                    f"Error creating recurring payment: {e}",
                    extra={"template_id": payment.parent_payment_id, "payment_date": payment.payment_date.isoformat()},
                )
                report.errors.append(
                    OperationError(subject_id=payment.parent_payment_id, step="insert", message=str(e))
                )
        return created

    def _finish(self, user_id: str, report: GenerationReport) -> None:
        record_generation(len(report.created), [err.step for err in report.errors])
        log_generation(
            user_id,
            report.templates_processed,
            len(report.created),
            report.skipped_existing,
            len(report.errors),
        )


class DailyRunGuard:
    """Remembers the last day generation ran per user, in process memory"""

    def __init__(self):
        self._last_run: Dict[str, date] = {}

    def should_run(self, user_id: str, today: date) -> bool:
        return self._last_run.get(user_id) != today

    def mark(self, user_id: str, today: date) -> None:
        self._last_run[user_id] = today


async def initialize_recurring_payments(
    generator: RecurringPaymentGenerator,
    guard: DailyRunGuard,
    user_id: str,
    today: Optional[date] = None,
) -> Optional[GenerationReport]:
    """Run generation at most once per user per day; None when it already ran"""
    today = today or date.today()
    if not guard.should_run(user_id, today):
        return None

    report = await generator.generate(user_id, today)
    guard.mark(user_id, today)
    return report
