"""On-chain balance and identity routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from onchain_budget.api.dependencies import get_container
from onchain_budget.constants import DEFAULT_CHAIN_ID
from onchain_budget.container import AppContainer
from onchain_budget.normalizers import format_balance, normalize_identity
from onchain_budget.utils.validation import require_address

router = APIRouter(prefix="/onchain", tags=["Onchain"])


@router.get("/balance/{address}")
async def get_native_balance(
    address: str,
    chainId: int = Query(DEFAULT_CHAIN_ID),
    container: AppContainer = Depends(get_container),
):
    data = await container.chain_gateway.get_native_balance(require_address(address), chainId)
    return {
        "address": data["address"],
        "chainId": data["chainId"],
        "balance": data["balance"],
        "balanceFormatted": format_balance(data["balance"], data["decimals"]),
        "symbol": data["symbol"],
        "decimals": data["decimals"],
    }


@router.get("/token-balance/{address}")
async def get_token_balance(
    address: str,
    tokenAddress: Optional[str] = Query(None),
    chainId: int = Query(DEFAULT_CHAIN_ID),
    container: AppContainer = Depends(get_container),
):
    data = await container.chain_gateway.get_token_balance(
        require_address(address),
        require_address(tokenAddress, field="tokenAddress"),
        chainId,
    )
    return {
        "address": data["address"],
        "tokenAddress": data["tokenAddress"],
        "chainId": data["chainId"],
        "balance": data["balance"],
        "balanceFormatted": format_balance(data["balance"], data["decimals"]),
        "decimals": data["decimals"],
    }


@router.get("/ens/{address}")
async def get_ens_profile(address: str, container: AppContainer = Depends(get_container)):
    """Identity profile, or {"profile": null} when the address has no name."""
    record = await container.identity_gateway.get_profile(require_address(address))
    profile = normalize_identity(record)
    return {"profile": profile.model_dump() if profile else None}
