"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass
class CreditCard:
    """Credit card with cached outstanding balance"""

    id: str
    user_id: str
    name: str
    limit_amount: Decimal
    current_balance: Decimal
    closing_day: int
    due_day: int


@dataclass
class CardTransaction:
    """Credit card movement: positive = purchase, negative = payment"""

    id: str
    user_id: str
    credit_card_id: str
    amount: Decimal
    description: str
    date: date
    installments: int = 1
    current_installment: int = 1
    category_id: Optional[str] = None

    @property
    def is_purchase(self) -> bool:
        return self.amount > 0

    @property
    def is_payment(self) -> bool:
        return self.amount < 0


@dataclass
class BillingCycle:
    """Calendar window covered by one invoice"""

    cycle_start: date
    cycle_end: date
    due_date: date


@dataclass
class BillingStats:
    """Totals for a billing window"""

    purchases_total: Decimal
    payments_total: Decimal
    previous_balance: Decimal
    total_to_pay: Decimal


@dataclass
class Invoice:
    """Closed credit card invoice for one billing cycle"""

    id: Optional[str]
    user_id: str
    credit_card_id: str
    cycle_start: date
    cycle_end: date
    due_date: date
    purchases_total: Decimal
    payments_total: Decimal
    previous_balance: Decimal
    total_due: Decimal
    paid_amount: Decimal = Decimal("0")
    status: str = "open"  # open | closed | paid | overdue


@dataclass
class PatientPayment:
    """Patient payment row; templates have is_recurring=True and no parent"""

    id: Optional[str]
    user_id: str
    patient_id: str
    amount: Decimal
    payment_date: date
    payment_method: str
    description: Optional[str] = None
    status: str = "pending"  # pending | paid | overdue | cancelled
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None  # weekly | monthly
    recurring_until: Optional[date] = None
    recurring_day: Optional[int] = None
    parent_payment_id: Optional[str] = None


@dataclass
class Account:
    """Bank/cash account with cached balance"""

    id: str
    user_id: str
    name: str
    initial_balance: Decimal
    current_balance: Decimal


@dataclass
class AccountTransaction:
    """Income or expense on an account; amount is always positive"""

    id: str
    account_id: str
    amount: Decimal
    type: str  # income | expense


@dataclass
class OperationError:
    """One failure collected by a best-effort job"""

    subject_id: Optional[str]
    step: str
    message: str


@dataclass
class GenerationReport:
    """Outcome of a recurring payment generation run"""

    templates_processed: int = 0
    created: List[PatientPayment] = field(default_factory=list)
    skipped_existing: int = 0
    errors: List[OperationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class RecalculationReport:
    """Outcome of an account balance recalculation run"""

    accounts_checked: int = 0
    accounts_updated: int = 0
    errors: List[OperationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
