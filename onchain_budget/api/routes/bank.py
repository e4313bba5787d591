"""Bank provider proxy routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from onchain_budget.api.dependencies import get_container
from onchain_budget.constants import DEFAULT_TRANSACTION_LIMIT
from onchain_budget.container import AppContainer
from onchain_budget.utils.validation import require_account_id

router = APIRouter(prefix="/mono", tags=["Bank"])


@router.get("/accounts/{account_id}")
async def get_account(account_id: str, container: AppContainer = Depends(get_container)):
    """Provider account record, passed through unchanged."""
    return await container.bank_gateway.get_account(require_account_id(account_id))


@router.get("/accounts/{account_id}/transactions")
async def get_transactions(
    account_id: str,
    limit: int = Query(DEFAULT_TRANSACTION_LIMIT, ge=1),
    start: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end: Optional[str] = Query(None, description="YYYY-MM-DD"),
    container: AppContainer = Depends(get_container),
):
    """Provider transaction page, passed through unchanged."""
    return await container.bank_gateway.get_transactions(
        require_account_id(account_id), limit=limit, start=start, end=end
    )
