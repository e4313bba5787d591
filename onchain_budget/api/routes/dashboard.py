"""Dashboard routes over the wallet's read model"""

import asyncio

from fastapi import APIRouter, Depends, Query

from onchain_budget.api.dependencies import get_container
from onchain_budget.api.schemas import ConnectBankRequest
from onchain_budget.constants import DEFAULT_CHAIN_ID
from onchain_budget.container import AppContainer
from onchain_budget.facade import FinancialAggregator, build_chart_data

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _dashboard_payload(aggregator: FinancialAggregator) -> dict:
    snapshot = aggregator.snapshot()
    return {
        **snapshot.model_dump(mode="json"),
        "has_tokens": aggregator.has_tokens,
        "charts": build_chart_data(snapshot.transactions, snapshot.token_balances),
    }


@router.get("/{wallet_address}")
async def get_dashboard(wallet_address: str, container: AppContainer = Depends(get_container)):
    """Current read model plus chart series; no provider calls."""
    return _dashboard_payload(container.get_aggregator(wallet_address))


@router.post("/{wallet_address}/refresh")
async def refresh_dashboard(
    wallet_address: str,
    chainId: int = Query(DEFAULT_CHAIN_ID),
    container: AppContainer = Depends(get_container),
):
    """
    Refresh portfolio, identity and bank data.

    Linked accounts are restored from the session the first time; after
    that each linked account's transactions are refreshed.
    """
    aggregator = container.get_aggregator(wallet_address)

    if aggregator.accounts:
        bank_refresh = asyncio.gather(*(aggregator.refresh_transactions(a.id) for a in aggregator.accounts))
    else:
        bank_refresh = aggregator.load_saved_accounts()

    await asyncio.gather(
        aggregator.refresh_portfolio(aggregator.wallet_address, chainId),
        aggregator.refresh_identity(aggregator.wallet_address),
        bank_refresh,
    )
    return _dashboard_payload(aggregator)


@router.post("/{wallet_address}/bank/connect")
async def connect_bank(
    wallet_address: str,
    payload: ConnectBankRequest,
    container: AppContainer = Depends(get_container),
):
    """Bank link callback."""
    aggregator = container.get_aggregator(wallet_address)
    account = await aggregator.connect_bank(payload.account_id)
    return {"account": account.model_dump(mode="json"), **_dashboard_payload(aggregator)}


@router.delete("/{wallet_address}/bank/{account_id}")
async def disconnect_bank(wallet_address: str, account_id: str, container: AppContainer = Depends(get_container)):
    aggregator = container.get_aggregator(wallet_address)
    await aggregator.disconnect_bank(account_id)
    return _dashboard_payload(aggregator)


@router.get("/{wallet_address}/bank/{account_id}/spending")
async def spending_summary(wallet_address: str, account_id: str, container: AppContainer = Depends(get_container)):
    """Expense totals per category for the last 30 days; {} when unavailable."""
    aggregator = container.get_aggregator(wallet_address)
    return {"account_id": account_id, "categories": await aggregator.get_spending_summary(account_id)}
