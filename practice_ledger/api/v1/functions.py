"""Serverless-style function endpoints: invoice closing and recurring generation"""

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from practice_ledger.api.dependencies import (
    get_credit_card_service,
    get_current_user_id,
    get_daily_run_guard,
    get_recurring_generator,
    get_request_id,
    get_today,
)
from practice_ledger.api.v1.schemas import (
    CloseInvoiceRequest,
    CloseInvoiceResponse,
    ClosedInvoiceSchema,
    GeneratedPaymentSchema,
    GenerationErrorSchema,
    GenerationResponse,
)
from practice_ledger.infrastructure.observability.logging import log_invoice_closed
from practice_ledger.infrastructure.observability.metrics import record_invoice_close
from practice_ledger.services.credit_cards import CreditCardService
from practice_ledger.services.recurring import (
    DailyRunGuard,
    RecurringPaymentGenerator,
    initialize_recurring_payments,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/close_credit_card_invoice", response_model=CloseInvoiceResponse)
async def close_credit_card_invoice(
    request_body: CloseInvoiceRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
    today: date = Depends(get_today),
):
    """
    Close a card's invoice for a cycle month.

    Flow:
    1. Resolve the caller from the bearer token
    2. Close (or re-close) the invoice for the cycle
    3. Record a card payment when paid_amount was supplied
    4. Return the invoice totals
    """
    start_time = time.time()
    request_id = get_request_id(request)

    result = await service.close_invoice(request_body.credit_card_id, user_id, request_body.cycle_month)

    if request_body.paid_amount:
        await service.record_invoice_payment(
            request_body.credit_card_id,
            user_id,
            request_body.paid_amount,
            payment_date=request_body.payment_date or today,
        )

    invoice = result.invoice
    duration_ms = (time.time() - start_time) * 1000
    record_invoice_close(result.created)
    log_invoice_closed(
        request_id,
        user_id,
        request_body.credit_card_id,
        request_body.cycle_month,
        str(invoice.total_due),
        result.created,
        duration_ms,
    )

    return CloseInvoiceResponse(
        invoice=ClosedInvoiceSchema(
            cycle_start=invoice.cycle_start,
            cycle_end=invoice.cycle_end,
            due_date=invoice.due_date,
            purchases_total=float(invoice.purchases_total),
            payments_total=float(invoice.payments_total),
            previous_balance=float(invoice.previous_balance),
            total_due=float(invoice.total_due),
        )
    )


@router.post("/generate_recurring_payments", response_model=GenerationResponse)
async def generate_recurring_payments(
    force: bool = Query(True, description="Run even if generation already ran today"),
    user_id: str = Depends(get_current_user_id),
    generator: RecurringPaymentGenerator = Depends(get_recurring_generator),
    guard: DailyRunGuard = Depends(get_daily_run_guard),
    today: date = Depends(get_today),
):
    """
    Expand the caller's recurring payment templates.

    Never fails on store errors: they come back in the errors list.
    With force=false the run is skipped if it already happened today.
    """
    if force:
        report = await generator.generate(user_id, today)
        guard.mark(user_id, today)
    else:
        report = await initialize_recurring_payments(generator, guard, user_id, today)

    if report is None:
        logger.info("Recurring generation already ran today", extra={"user_id": user_id})
        return GenerationResponse(ran=False)

    return GenerationResponse(
        ran=True,
        templates_processed=report.templates_processed,
        created=[
            GeneratedPaymentSchema(
                id=p.id,
                patient_id=p.patient_id,
                parent_payment_id=p.parent_payment_id,
                payment_date=p.payment_date,
                amount=float(p.amount),
                status=p.status,
            )
            for p in report.created
        ],
        skipped_existing=report.skipped_existing,
        errors=[GenerationErrorSchema(subject_id=e.subject_id, step=e.step, message=e.message) for e in report.errors],
    )
