"""POST /v1/accounts/recalculate - rebuild cached account balances"""

from fastapi import APIRouter, Depends

from practice_ledger.api.dependencies import get_account_service, get_current_user_id
from practice_ledger.api.v1.schemas import GenerationErrorSchema, RecalculationResponse
from practice_ledger.services.accounts import AccountService

router = APIRouter()


@router.post("/accounts/recalculate", response_model=RecalculationResponse)
async def recalculate_accounts(
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
):
    report = await service.recalculate_balances(user_id)
    return RecalculationResponse(
        accounts_checked=report.accounts_checked,
        accounts_updated=report.accounts_updated,
        errors=[GenerationErrorSchema(subject_id=e.subject_id, step=e.step, message=e.message) for e in report.errors],
    )
