"""Dependency injection for FastAPI endpoints"""

from datetime import date

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from practice_ledger.config import settings
from practice_ledger.infrastructure.clients.auth import AuthClient, extract_bearer_token
from practice_ledger.infrastructure.database.session import get_db
from practice_ledger.infrastructure.store.base import DataStore
from practice_ledger.infrastructure.store.postgrest import PostgrestDataStore
from practice_ledger.infrastructure.store.sql import SqlDataStore
from practice_ledger.services.accounts import AccountService
from practice_ledger.services.credit_cards import CreditCardService
from practice_ledger.services.recurring import DailyRunGuard, RecurringPaymentGenerator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    return date.today()


def get_auth_client() -> AuthClient:
    """Provide hosted auth client instance"""
    return AuthClient()


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    auth_client: AuthClient = Depends(get_auth_client),
) -> str:
    """Resolve the caller from the bearer token; raises UnauthorizedError"""
    token = extract_bearer_token(authorization)
    return await auth_client.get_user_id(token)


def get_store(db: Session = Depends(get_db)) -> DataStore:
    """Provide the configured data store"""
    if settings.store_backend == "postgrest":
        return PostgrestDataStore()
    return SqlDataStore(db)


def get_credit_card_service(store: DataStore = Depends(get_store)) -> CreditCardService:
    return CreditCardService(store)


def get_account_service(store: DataStore = Depends(get_store)) -> AccountService:
    return AccountService(store)


def get_recurring_generator(store: DataStore = Depends(get_store)) -> RecurringPaymentGenerator:
    return RecurringPaymentGenerator(store)


def get_daily_run_guard(request: Request) -> DailyRunGuard:
    """One guard per application instance"""
    return request.app.state.daily_run_guard
