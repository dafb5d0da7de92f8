"""Service tests for account balance recalculation"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from conftest import OTHER_USER_ID, USER_ID
from practice_ledger.domain.exceptions import DataStoreError
from practice_ledger.infrastructure.database.models import AccountRow, TransactionRow
from practice_ledger.services.accounts import AccountService


@pytest.fixture
def service(store) -> AccountService:
    return AccountService(store)


@pytest.fixture
def accounts(db):
    db.add_all(
        [
            AccountRow(id="acc_1", user_id=USER_ID, name="Checking", initial_balance=Decimal("500"), current_balance=Decimal("500")),
            AccountRow(id="acc_2", user_id=USER_ID, name="Cash", initial_balance=Decimal("100"), current_balance=Decimal("100")),
            AccountRow(id="acc_3", user_id=OTHER_USER_ID, name="Other", initial_balance=Decimal("0"), current_balance=Decimal("0")),
        ]
    )
    db.add_all(
        [
            TransactionRow(user_id=USER_ID, account_id="acc_1", amount=Decimal("1000"), type="income", date=date(2024, 1, 1)),
            TransactionRow(user_id=USER_ID, account_id="acc_1", amount=Decimal("300"), type="expense", date=date(2024, 1, 2)),
            TransactionRow(user_id=OTHER_USER_ID, account_id="acc_3", amount=Decimal("50"), type="income", date=date(2024, 1, 2)),
        ]
    )
    db.commit()


async def test_recalculate_updates_only_drifted_accounts(service, accounts, db):
    report = await service.recalculate_balances(USER_ID)

    db.expire_all()
    assert report.ok
    assert report.accounts_checked == 2
    assert report.accounts_updated == 1
    assert db.get(AccountRow, "acc_1").current_balance == Decimal("1200.00")
    assert db.get(AccountRow, "acc_2").current_balance == Decimal("100.00")
    assert db.get(AccountRow, "acc_3").current_balance == Decimal("0.00")


async def test_recalculate_collects_errors_without_raising(service, accounts):
    real_select = service.store.select

    async def failing_select(table, filters=(), **kwargs):
        if table == "transactions":
            raise DataStoreError("network down")
        return await real_select(table, filters, **kwargs)

    with patch.object(service.store, "select", failing_select):
        report = await service.recalculate_balances(USER_ID)

    assert report.accounts_checked == 2
    assert report.accounts_updated == 0
    assert sorted(e.subject_id for e in report.errors) == ["acc_1", "acc_2"]
