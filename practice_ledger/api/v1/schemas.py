"""Pydantic schemas for API request/response validation"""

import datetime as dt
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CloseInvoiceRequest(BaseModel):
    """Request body for POST /functions/v1/close_credit_card_invoice"""

    credit_card_id: str = Field(..., min_length=1, description="Card identifier")
    cycle_month: str = Field(..., min_length=1, description="Cycle month as YYYY-MM")
    paid_amount: Optional[Decimal] = Field(default=None, ge=0, description="Amount paid towards this invoice")
    payment_date: Optional[date] = None


class ClosedInvoiceSchema(BaseModel):
    cycle_start: date
    cycle_end: date
    due_date: date
    purchases_total: float
    payments_total: float
    previous_balance: float
    total_due: float


class CloseInvoiceResponse(BaseModel):
    """Response for POST /functions/v1/close_credit_card_invoice"""

    success: bool = True
    invoice: ClosedInvoiceSchema


class GeneratedPaymentSchema(BaseModel):
    id: Optional[str] = None
    patient_id: str
    parent_payment_id: Optional[str] = None
    payment_date: date
    amount: float
    status: str


class GenerationErrorSchema(BaseModel):
    subject_id: Optional[str] = None
    step: str
    message: str


class GenerationResponse(BaseModel):
    """Response for POST /functions/v1/generate_recurring_payments"""

    ran: bool
    templates_processed: int = 0
    created: List[GeneratedPaymentSchema] = []
    skipped_existing: int = 0
    errors: List[GenerationErrorSchema] = []


class CardCreateRequest(BaseModel):
    name: str
    limit_amount: Decimal
    closing_day: int
    due_day: int


class CardUpdateRequest(BaseModel):
    name: Optional[str] = None
    limit_amount: Optional[Decimal] = None
    closing_day: Optional[int] = None
    due_day: Optional[int] = None


class CardSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    limit_amount: float
    current_balance: float
    closing_day: int
    due_day: int


class CardTransactionCreateRequest(BaseModel):
    amount: Decimal
    description: str
    date: Optional[dt.date] = None
    installments: Optional[int] = None
    category_id: Optional[str] = None


class CardTransactionUpdateRequest(BaseModel):
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    installments: Optional[int] = None
    category_id: Optional[str] = None
    credit_card_id: Optional[str] = None


class CardTransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    credit_card_id: str
    amount: float
    description: str
    date: dt.date
    installments: int
    current_installment: int
    category_id: Optional[str] = None


class InvoiceSchema(BaseModel):
    """Single invoice in history"""

    id: Optional[str] = None
    cycle_start: date
    cycle_end: date
    due_date: date
    purchases_total: float
    payments_total: float
    previous_balance: float
    total_due: float
    paid_amount: float
    status: str
    payment_status: str
    outstanding_balance: float


class InvoiceHistoryResponse(BaseModel):
    credit_card_id: str
    invoices: List[InvoiceSchema]


class BillingStatsResponse(BaseModel):
    cycle_start: date
    cycle_end: date
    due_date: date
    purchases_total: float
    payments_total: float
    previous_balance: float
    total_to_pay: float


class RecalculationResponse(BaseModel):
    accounts_checked: int
    accounts_updated: int
    errors: List[GenerationErrorSchema] = []
