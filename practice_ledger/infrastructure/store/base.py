"""Generic filtered query interface over the remote tables"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

# Table names
CREDIT_CARDS = "credit_cards"
CARD_TRANSACTIONS = "credit_card_transactions"
CARD_INVOICES = "credit_card_invoices"
PATIENT_PAYMENTS = "patient_payments"
ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"

OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "is")

Row = Dict[str, Any]


@dataclass(frozen=True)
class Filter:
    """column <op> value"""

    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def is_null(column: str) -> Filter:
    return Filter(column, "is", None)


class DataStore(Protocol):
    """
    Persistence collaborator. Every call is a separate round trip; nothing
    spans calls, so multi-step operations are not atomic.

    Implementations raise DataStoreError on any failure.
    """

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        ...

    async def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        ...

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        ...

    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        ...
