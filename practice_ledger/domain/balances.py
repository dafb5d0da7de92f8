"""Balance folds for credit cards and accounts"""

from decimal import Decimal
from typing import Iterable

from practice_ledger.domain.billing import ZERO, money, sum_payments, sum_purchases
from practice_ledger.domain.models import AccountTransaction, CardTransaction

# Accounts whose cached balance is within this of the computed one are left alone
BALANCE_TOLERANCE = Decimal("0.01")


def card_balance(transactions: Iterable[CardTransaction]) -> Decimal:
    """
    Outstanding card balance over the whole transaction history.

    Floored at zero, so an overpaid card reports 0 instead of a credit.
    """
    transactions = list(transactions)
    balance = sum_purchases(transactions) - sum_payments(transactions)
    return money(max(ZERO, balance))


def account_balance(initial_balance: Decimal, transactions: Iterable[AccountTransaction]) -> Decimal:
    """initial_balance + income - expense"""
    balance = initial_balance or ZERO
    for txn in transactions:
        if txn.type == "income":
            balance += txn.amount
        else:
            balance -= txn.amount
    return money(balance)


def needs_update(cached: Decimal, computed: Decimal) -> bool:
    return abs(computed - (cached or ZERO)) > BALANCE_TOLERANCE
