"""
Provider adapters.

Each adapter pairs one gateway with its normalizer and exposes the narrow
interface the aggregation facade depends on. Provider JSON shapes are only
known to the gateway/normalizer behind an adapter, so a provider can be
swapped without touching the facade.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

from onchain_budget.gateways import EnsGateway, MonoGateway, OnchainGateway
from onchain_budget.models import BankAccount, BankTransaction, IdentityProfile, TokenBalance
from onchain_budget.normalizers import (
    normalize_account,
    normalize_identity,
    normalize_token_balance,
    normalize_transactions,
)


class BankDataSource(ABC):
    """Linked bank accounts and their transactions."""

    @abstractmethod
    async def get_account(self, account_id: str) -> BankAccount:
        """
        Fetch one linked account.

        Raises:
            ValidationError, UpstreamError, TransportError, NormalizationError
        """

    @abstractmethod
    async def get_transactions(
        self,
        account_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = 50,
    ) -> List[BankTransaction]:
        """
        Fetch transactions for an account within a date window.

        Raises:
            ValidationError, UpstreamError, TransportError, NormalizationError
        """


class ChainDataSource(ABC):
    """Native and token balances for a wallet."""

    @abstractmethod
    async def get_token_balance(self, address: str, chain_id: int, token: Dict[str, Any]) -> TokenBalance:
        """
        Fetch and normalize the balance of one configured token.

        Raises:
            ValidationError, UpstreamError, TransportError, NormalizationError
        """


class IdentitySource(ABC):
    """ENS-style identity for an address."""

    @abstractmethod
    async def get_profile(self, address: str) -> Optional[IdentityProfile]:
        """
        Fetch the identity profile; None when the address has none.

        Raises:
            ValidationError, UpstreamError, TransportError, NormalizationError
        """


class MonoBankSource(BankDataSource):
    def __init__(self, gateway: MonoGateway):
        self.gateway = gateway

    async def get_account(self, account_id: str) -> BankAccount:
        payload = await self.gateway.get_account(account_id)
        return normalize_account(payload)

    async def get_transactions(self, account_id, start=None, end=None, limit=50):
        payload = await self.gateway.get_transactions(account_id, limit=limit, start=start, end=end)
        return normalize_transactions(payload, account_id)


class RpcChainSource(ChainDataSource):
    def __init__(self, gateway: OnchainGateway):
        self.gateway = gateway

    async def get_token_balance(self, address, chain_id, token):
        if token.get("is_native"):
            data = await self.gateway.get_native_balance(address, chain_id)
        else:
            data = await self.gateway.get_token_balance(address, token["address"], chain_id)
        return normalize_token_balance(token, data["balance"], decimals=data.get("decimals"))


class EnsIdentitySource(IdentitySource):
    def __init__(self, gateway: EnsGateway):
        self.gateway = gateway

    async def get_profile(self, address):
        record = await self.gateway.get_profile(address)
        return normalize_identity(record)
