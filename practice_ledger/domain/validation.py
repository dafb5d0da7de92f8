"""Field rules applied before anything is written to the store"""

from decimal import Decimal
from typing import Any, Dict, Optional

from practice_ledger.domain.exceptions import ValidationError
from practice_ledger.domain.recurrence import FREQUENCIES

MAX_CARD_NAME_LENGTH = 100
MAX_INSTALLMENTS = 24


def _check_day(value: Any, field: str, label: str) -> None:
    if value is None or not 1 <= int(value) <= 31:
        raise ValidationError(f"{label} must be between 1 and 31", field=field)


def validate_card(data: Dict[str, Any], partial: bool = False) -> None:
    """
    Validate credit card fields.

    With partial=True only the keys present are checked (updates).
    """
    if not partial or "name" in data:
        name = (data.get("name") or "").strip()
        if not 1 <= len(name) <= MAX_CARD_NAME_LENGTH:
            raise ValidationError(
                f"Card name must be between 1 and {MAX_CARD_NAME_LENGTH} characters", field="name"
            )
    if not partial or "limit_amount" in data:
        limit = data.get("limit_amount")
        if limit is None or Decimal(str(limit)) <= 0:
            raise ValidationError("Limit must be greater than 0", field="limit_amount")
    if not partial or "closing_day" in data:
        _check_day(data.get("closing_day"), "closing_day", "Closing day")
    if not partial or "due_day" in data:
        _check_day(data.get("due_day"), "due_day", "Due day")


def validate_card_transaction(data: Dict[str, Any], partial: bool = False) -> None:
    if not partial or "amount" in data:
        amount = data.get("amount")
        if amount is None or Decimal(str(amount)) == 0:
            raise ValidationError("Transaction amount cannot be zero", field="amount")
    if not partial or "description" in data:
        if not (data.get("description") or "").strip():
            raise ValidationError("Description is required", field="description")
    if "date" in data and data["date"] is None:
        raise ValidationError("Date is required", field="date")

    installments: Optional[int] = data.get("installments")
    if installments is not None and not 1 <= int(installments) <= MAX_INSTALLMENTS:
        raise ValidationError(f"Installments must be between 1 and {MAX_INSTALLMENTS}", field="installments")


def validate_template(frequency: Optional[str], recurring_day: Optional[int]) -> None:
    """Recurring template settings must be usable by the generator"""
    if frequency not in FREQUENCIES:
        raise ValidationError(f"Unsupported recurring frequency: {frequency!r}", field="recurring_frequency")
    if recurring_day is not None:
        _check_day(recurring_day, "recurring_day", "Recurring day")
