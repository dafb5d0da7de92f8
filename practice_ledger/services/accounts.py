"""Opportunistic account balance recalculation"""

import logging
from datetime import datetime, timezone

from practice_ledger.domain.balances import account_balance, needs_update
from practice_ledger.domain.exceptions import DataStoreError
from practice_ledger.domain.models import OperationError, RecalculationReport
from practice_ledger.infrastructure.store import mappers
from practice_ledger.infrastructure.store.base import ACCOUNTS, TRANSACTIONS, DataStore, eq

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, store: DataStore):
        self.store = store

    async def recalculate_balances(self, user_id: str) -> RecalculationReport:
        """
        Rebuild every account's cached balance from its transactions.

        balance = initial_balance + income - expense. Rows are only written
        when the cached value is off by more than a cent. Store failures are
        logged and collected in the report; one failing account does not stop
        the others.
        """
        report = RecalculationReport()

        try:
            rows = await self.store.select(ACCOUNTS, [eq("user_id", user_id)])
        except DataStoreError as e:
            logger.error(f"Error loading accounts: {e}", extra={"user_id": user_id})
            report.errors.append(OperationError(subject_id=None, step="load", message=str(e)))
            return report

        for account in (mappers.to_account(row) for row in rows):
            report.accounts_checked += 1
            try:
                txn_rows = await self.store.select(
                    TRANSACTIONS, [eq("user_id", user_id), eq("account_id", account.id)]
                )
                balance = account_balance(
                    account.initial_balance, (mappers.to_account_transaction(row) for row in txn_rows)
                )
                if not needs_update(account.current_balance, balance):
                    continue

                await self.store.update(
                    ACCOUNTS,
                    {"current_balance": balance, "updated_at": datetime.now(timezone.utc)},
                    [eq("id", account.id), eq("user_id", user_id)],
                )
                report.accounts_updated += 1

            except DataStoreError as e:
                logger.error(
                    f"Error recalculating account balance: {e}",
                    extra={"user_id": user_id, "account_id": account.id},
                )
                report.errors.append(OperationError(subject_id=account.id, step="recalculate", message=str(e)))

        return report
