"""Credit card, card transaction and invoice history endpoints"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, Response

from practice_ledger.api.dependencies import get_credit_card_service, get_current_user_id, get_today
from practice_ledger.api.v1.schemas import (
    BillingStatsResponse,
    CardCreateRequest,
    CardSchema,
    CardTransactionCreateRequest,
    CardTransactionSchema,
    CardTransactionUpdateRequest,
    CardUpdateRequest,
    InvoiceHistoryResponse,
    InvoiceSchema,
)
from practice_ledger.config import settings
from practice_ledger.domain.billing import invoice_status, outstanding_balance
from practice_ledger.services.credit_cards import CreditCardService

router = APIRouter()


@router.get("/cards", response_model=List[CardSchema])
async def list_cards(
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    return [CardSchema.model_validate(card) for card in await service.list_cards(user_id)]


@router.post("/cards", response_model=CardSchema, status_code=201)
async def create_card(
    body: CardCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    card = await service.create_card(user_id, body.model_dump())
    return CardSchema.model_validate(card)


@router.patch("/cards/{card_id}", response_model=CardSchema)
async def update_card(
    card_id: str,
    body: CardUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    card = await service.update_card(card_id, user_id, body.model_dump(exclude_unset=True))
    return CardSchema.model_validate(card)


@router.delete("/cards/{card_id}", status_code=204)
async def delete_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    await service.delete_card(card_id, user_id)
    return Response(status_code=204)


@router.get("/cards/{card_id}/transactions", response_model=List[CardTransactionSchema])
async def list_transactions(
    card_id: str,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    transactions = await service.list_transactions(card_id, user_id, start_date, end_date)
    return [CardTransactionSchema.model_validate(t) for t in transactions]


@router.post("/cards/{card_id}/transactions", response_model=CardTransactionSchema, status_code=201)
async def create_transaction(
    card_id: str,
    body: CardTransactionCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    """Record a purchase (positive) or payment (negative); the card balance is refreshed before returning"""
    txn = await service.create_transaction(user_id, card_id, body.model_dump())
    return CardTransactionSchema.model_validate(txn)


@router.patch("/cards/{card_id}/transactions/{tx_id}", response_model=CardTransactionSchema)
async def update_transaction(
    card_id: str,
    tx_id: str,
    body: CardTransactionUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    txn = await service.update_transaction(tx_id, user_id, body.model_dump(exclude_unset=True))
    return CardTransactionSchema.model_validate(txn)


@router.delete("/cards/{card_id}/transactions/{tx_id}", status_code=204)
async def delete_transaction(
    card_id: str,
    tx_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    await service.delete_transaction(tx_id, user_id)
    return Response(status_code=204)


@router.get("/cards/{card_id}/invoices", response_model=InvoiceHistoryResponse)
async def get_invoice_history(
    card_id: str,
    limit: int = Query(settings.invoice_history_limit, ge=1, le=120),
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
    today: date = Depends(get_today),
):
    """
    Retrieve recent invoices for a card, newest first.

    Each invoice carries its derived payment status (paid/pending/overdue)
    and what is still outstanding.
    """
    await service.get_card(card_id, user_id)
    invoices = await service.list_invoices(card_id, user_id, limit=limit)

    return InvoiceHistoryResponse(
        credit_card_id=card_id,
        invoices=[
            InvoiceSchema(
                id=inv.id,
                cycle_start=inv.cycle_start,
                cycle_end=inv.cycle_end,
                due_date=inv.due_date,
                purchases_total=float(inv.purchases_total),
                payments_total=float(inv.payments_total),
                previous_balance=float(inv.previous_balance),
                total_due=float(inv.total_due),
                paid_amount=float(inv.paid_amount),
                status=inv.status,
                payment_status=invoice_status(inv, today),
                outstanding_balance=float(outstanding_balance(inv)),
            )
            for inv in invoices
        ],
    )


@router.get("/cards/{card_id}/billing-stats", response_model=BillingStatsResponse)
async def get_billing_stats(
    card_id: str,
    cycle_month: str = Query(..., description="Cycle month as YYYY-MM"),
    user_id: str = Depends(get_current_user_id),
    service: CreditCardService = Depends(get_credit_card_service),
):
    cycle = await service.cycle_for(card_id, user_id, cycle_month)
    stats = await service.billing_stats(card_id, user_id, cycle.cycle_start, cycle.cycle_end)

    return BillingStatsResponse(
        cycle_start=cycle.cycle_start,
        cycle_end=cycle.cycle_end,
        due_date=cycle.due_date,
        purchases_total=float(stats.purchases_total),
        payments_total=float(stats.payments_total),
        previous_balance=float(stats.previous_balance),
        total_to_pay=float(stats.total_to_pay),
    )
