"""
Credit Card Service
===================
Card and card-transaction bookkeeping, balance recalculation and invoice
closing, all against an injected DataStore.

Sign convention
---------------
  - Positive amount → purchase (debt increases)
  - Negative amount → payment (debt decreases)

Every query is scoped by ``user_id``. Multi-step operations (close_invoice,
recalculate_balance) are read-then-write sequences across separate store
calls; two concurrent closes of the same cycle race and the last write wins.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from practice_ledger.domain import billing
from practice_ledger.domain.balances import card_balance
from practice_ledger.domain.exceptions import NotFoundError, ValidationError
from practice_ledger.domain.models import BillingCycle, BillingStats, CardTransaction, CreditCard, Invoice
from practice_ledger.domain.validation import validate_card, validate_card_transaction
from practice_ledger.infrastructure.store import mappers
from practice_ledger.infrastructure.store.base import (
    CARD_INVOICES,
    CARD_TRANSACTIONS,
    CREDIT_CARDS,
    DataStore,
    eq,
    gt,
    gte,
    lt,
    lte,
)

logger = logging.getLogger(__name__)

CARD_FIELDS = ("name", "limit_amount", "closing_day", "due_day")
TRANSACTION_FIELDS = ("amount", "description", "date", "installments", "current_installment", "category_id", "credit_card_id")


@dataclass
class InvoiceCloseResult:
    """Invoice as stored after a close, plus whether the row was new"""

    invoice: Invoice
    created: bool


class CreditCardService:

    def __init__(self, store: DataStore):
        self.store = store

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    async def list_cards(self, user_id: str) -> List[CreditCard]:
        rows = await self.store.select(CREDIT_CARDS, [eq("user_id", user_id)], order_by="created_at", descending=True)
        return [mappers.to_card(row) for row in rows]

    async def get_card(self, card_id: str, user_id: str) -> CreditCard:
        """
        Raises:
            NotFoundError: If the card does not exist or belongs to another user
        """
        rows = await self.store.select(CREDIT_CARDS, [eq("id", card_id), eq("user_id", user_id)], limit=1)
        if not rows:
            raise NotFoundError("Card not found")
        return mappers.to_card(rows[0])

    async def create_card(self, user_id: str, data: Dict[str, Any]) -> CreditCard:
        validate_card(data)
        row = {key: data[key] for key in CARD_FIELDS}
        row["name"] = row["name"].strip()
        row.update(user_id=user_id, current_balance=Decimal("0"))

        created = await self.store.insert(CREDIT_CARDS, [row])
        return mappers.to_card(created[0])

    async def update_card(self, card_id: str, user_id: str, updates: Dict[str, Any]) -> CreditCard:
        values = {key: value for key, value in updates.items() if key in CARD_FIELDS}
        validate_card(values, partial=True)
        if not values:
            return await self.get_card(card_id, user_id)

        rows = await self.store.update(CREDIT_CARDS, values, [eq("id", card_id), eq("user_id", user_id)])
        if not rows:
            raise NotFoundError("Card not found")
        return mappers.to_card(rows[0])

    async def delete_card(self, card_id: str, user_id: str) -> None:
        deleted = await self.store.delete(CREDIT_CARDS, [eq("id", card_id), eq("user_id", user_id)])
        if not deleted:
            raise NotFoundError("Card not found")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        card_id: str,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[CardTransaction]:
        """Transactions for a card, newest first, optionally limited to [start_date, end_date]"""
        filters = [eq("credit_card_id", card_id), eq("user_id", user_id)]
        if start_date:
            filters.append(gte("date", start_date))
        if end_date:
            filters.append(lte("date", end_date))

        rows = await self.store.select(CARD_TRANSACTIONS, filters, order_by="date", descending=True)
        return [mappers.to_card_transaction(row) for row in rows]

    async def create_transaction(self, user_id: str, card_id: str, data: Dict[str, Any]) -> CardTransaction:
        """Record a purchase or payment and refresh the card balance"""
        validate_card_transaction(data)
        await self.get_card(card_id, user_id)

        row = {
            "user_id": user_id,
            "credit_card_id": card_id,
            "amount": billing.money(data["amount"]),
            "description": data["description"].strip(),
            "date": data.get("date") or date.today(),
            "installments": data.get("installments") or 1,
            "current_installment": 1,
            "category_id": data.get("category_id"),
        }
        created = await self.store.insert(CARD_TRANSACTIONS, [row])

        await self.recalculate_balance(card_id, user_id)
        return mappers.to_card_transaction(created[0])

    async def update_transaction(self, tx_id: str, user_id: str, updates: Dict[str, Any]) -> CardTransaction:
        values = {key: value for key, value in updates.items() if key in TRANSACTION_FIELDS}
        validate_card_transaction(values, partial=True)

        existing = await self._get_transaction(tx_id, user_id)
        if "credit_card_id" in values and values["credit_card_id"] != existing.credit_card_id:
            await self.get_card(values["credit_card_id"], user_id)
        if "amount" in values:
            values["amount"] = billing.money(values["amount"])
        if not values:
            return existing

        rows = await self.store.update(CARD_TRANSACTIONS, values, [eq("id", tx_id), eq("user_id", user_id)])
        updated = mappers.to_card_transaction(rows[0])

        await self.recalculate_balance(updated.credit_card_id, user_id)
        if updated.credit_card_id != existing.credit_card_id:
            await self.recalculate_balance(existing.credit_card_id, user_id)
        return updated

    async def delete_transaction(self, tx_id: str, user_id: str) -> None:
        existing = await self._get_transaction(tx_id, user_id)
        await self.store.delete(CARD_TRANSACTIONS, [eq("id", tx_id), eq("user_id", user_id)])
        await self.recalculate_balance(existing.credit_card_id, user_id)

    async def _get_transaction(self, tx_id: str, user_id: str) -> CardTransaction:
        rows = await self.store.select(CARD_TRANSACTIONS, [eq("id", tx_id), eq("user_id", user_id)], limit=1)
        if not rows:
            raise NotFoundError("Transaction not found")
        return mappers.to_card_transaction(rows[0])

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def recalculate_balance(self, card_id: str, user_id: str) -> Decimal:
        """
        Recompute current_balance from the card's entire history.

        Full fold on every call: purchases minus payments, floored at zero.
        """
        rows = await self.store.select(CARD_TRANSACTIONS, [eq("credit_card_id", card_id), eq("user_id", user_id)])
        balance = card_balance(mappers.to_card_transaction(row) for row in rows)

        await self.store.update(
            CREDIT_CARDS,
            {"current_balance": balance},
            [eq("id", card_id), eq("user_id", user_id)],
        )
        return balance

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def _cycle_transactions(self, card_id: str, user_id: str, start: date, end: date, sign_filter) -> List[CardTransaction]:
        rows = await self.store.select(
            CARD_TRANSACTIONS,
            [eq("credit_card_id", card_id), eq("user_id", user_id), gte("date", start), lte("date", end), sign_filter],
        )
        return [mappers.to_card_transaction(row) for row in rows]

    async def _previous_invoice(self, card_id: str, user_id: str, before: date) -> Optional[Invoice]:
        """Most recent invoice whose cycle ended before the given date"""
        rows = await self.store.select(
            CARD_INVOICES,
            [eq("credit_card_id", card_id), eq("user_id", user_id), lt("cycle_end", before)],
            order_by="cycle_end",
            descending=True,
            limit=1,
        )
        return mappers.to_invoice(rows[0]) if rows else None

    async def billing_stats(self, card_id: str, user_id: str, cycle_start: date, cycle_end: date) -> BillingStats:
        """Running totals for a window, as shown before it is closed"""
        purchases = await self._cycle_transactions(card_id, user_id, cycle_start, cycle_end, gt("amount", 0))
        payments = await self._cycle_transactions(card_id, user_id, cycle_start, cycle_end, lt("amount", 0))
        previous = await self._previous_invoice(card_id, user_id, cycle_start)
        return billing.billing_stats(purchases + payments, previous)

    async def cycle_for(self, card_id: str, user_id: str, cycle_month: str) -> BillingCycle:
        card = await self.get_card(card_id, user_id)
        return billing.compute_cycle(card.closing_day, card.due_day, cycle_month)

    async def close_invoice(self, card_id: str, user_id: str, cycle_month: str) -> InvoiceCloseResult:
        """
        Close the invoice for the cycle ending in cycle_month.

        Flow:
        1. Load the card (NotFoundError if not the caller's)
        2. Compute cycle start/end/due date
        3. Sum purchases and payments dated inside the cycle
        4. Carry the outstanding balance of the latest earlier invoice
        5. Upsert the invoice for (cycle_start, cycle_end) with status "closed"

        Re-closing the same cycle updates the existing row; its paid_amount
        is left as it is.
        """
        card = await self.get_card(card_id, user_id)
        cycle = billing.compute_cycle(card.closing_day, card.due_day, cycle_month)

        purchases = await self._cycle_transactions(card_id, user_id, cycle.cycle_start, cycle.cycle_end, gt("amount", 0))
        payments = await self._cycle_transactions(card_id, user_id, cycle.cycle_start, cycle.cycle_end, lt("amount", 0))
        purchases_total = billing.sum_purchases(purchases)
        payments_total = billing.sum_payments(payments)

        previous = await self._previous_invoice(card_id, user_id, cycle.cycle_start)
        previous_balance = billing.outstanding_balance(previous)
        total_due = billing.total_due(purchases_total, previous_balance, payments_total)

        totals = {
            "due_date": cycle.due_date,
            "purchases_total": purchases_total,
            "payments_total": payments_total,
            "previous_balance": previous_balance,
            "total_due": total_due,
            "status": "closed",
        }

        existing = await self.store.select(
            CARD_INVOICES,
            [
                eq("credit_card_id", card_id),
                eq("user_id", user_id),
                eq("cycle_start", cycle.cycle_start),
                eq("cycle_end", cycle.cycle_end),
            ],
            limit=1,
        )

        if existing:
            rows = await self.store.update(
                CARD_INVOICES, totals, [eq("id", existing[0]["id"]), eq("user_id", user_id)]
            )
            return InvoiceCloseResult(invoice=mappers.to_invoice(rows[0]), created=False)

        invoice = Invoice(
            id=None,
            user_id=user_id,
            credit_card_id=card_id,
            cycle_start=cycle.cycle_start,
            cycle_end=cycle.cycle_end,
            paid_amount=billing.money(0),
            **totals,
        )
        rows = await self.store.insert(CARD_INVOICES, [mappers.invoice_values(invoice)])
        return InvoiceCloseResult(invoice=mappers.to_invoice(rows[0]), created=True)

    async def record_invoice_payment(
        self,
        card_id: str,
        user_id: str,
        amount: Decimal,
        payment_date: Optional[date] = None,
        description: str = "Invoice payment",
    ) -> CardTransaction:
        """Record a payment against the card after an invoice is closed"""
        if amount is None or amount <= 0:
            raise ValidationError("Paid amount must be greater than 0", field="paid_amount")
        return await self.create_transaction(
            user_id,
            card_id,
            {"amount": -billing.money(amount), "description": description, "date": payment_date or date.today()},
        )

    async def list_invoices(self, card_id: str, user_id: str, limit: int = 12) -> List[Invoice]:
        rows = await self.store.select(
            CARD_INVOICES,
            [eq("credit_card_id", card_id), eq("user_id", user_id)],
            order_by="cycle_end",
            descending=True,
            limit=limit,
        )
        return [mappers.to_invoice(row) for row in rows]
