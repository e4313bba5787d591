"""JSON-RPC gateway for native and ERC-20 balances"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from onchain_budget.constants import DEFAULT_CHAIN_ID, ERC20_BALANCE_OF_SELECTOR, HTTP_TIMEOUT_SECONDS
from onchain_budget.gateways.base import ProviderGateway
from onchain_budget.utils.errors import TransportError, UpstreamError, ValidationError
from onchain_budget.utils.validation import require_address

ERC20_DECIMALS_SELECTOR = "0x313ce567"
NATIVE_DECIMALS = 18


class OnchainGateway(ProviderGateway):
    """
    Balance lookups against one JSON-RPC node per chain.

    RPC URLs may embed provider keys, so they are only held server side.
    A JSON-RPC error member is reported as an UpstreamError with status 502
    because nodes answer those with HTTP 200.
    """

    provider = "rpc"

    def __init__(
        self,
        rpc_urls: Dict[int, str],
        native_symbols: Optional[Dict[int, str]] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self.rpc_urls = {int(k): v for k, v in rpc_urls.items()}
        self.native_symbols = {int(k): v for k, v in (native_symbols or {}).items()}
        self._request_id = 0

    def _rpc_url(self, chain_id: int) -> str:
        url = self.rpc_urls.get(int(chain_id))
        if not url:
            raise ValidationError(f"Unsupported chainId: {chain_id}")
        return url

    async def _rpc(self, chain_id: int, method: str, params: List[Any]) -> int:
        """Call one JSON-RPC method and decode its hex quantity result."""
        self._request_id += 1
        payload = await self._request(
            "POST",
            self._rpc_url(chain_id),
            json={"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params},
        )

        if not isinstance(payload, dict):
            raise TransportError(self.provider, "Unexpected JSON-RPC payload")
        if payload.get("error"):
            raise UpstreamError(self.provider, 502, payload["error"])
        return self._decode_quantity(method, payload.get("result"))

    def _decode_quantity(self, method: str, value: Any) -> int:
        if not value or value == "0x":
            return 0
        try:
            return int(value, 16)
        except (TypeError, ValueError):
            raise UpstreamError(self.provider, 502, {"method": method, "message": "Undecodable result", "result": value})

    async def get_native_balance(self, address: str, chain_id: int = DEFAULT_CHAIN_ID) -> Dict[str, Any]:
        """
        Native asset balance (wei) for an address.

        Returns:
            {"address", "chainId", "balance", "symbol", "decimals"}

        Raises:
            ValidationError: Malformed address or unknown chain
        """
        require_address(address)
        result = await self._rpc(chain_id, "eth_getBalance", [address, "latest"])

        return {
            "address": address,
            "chainId": int(chain_id),
            "balance": str(result),
            "symbol": self.native_symbols.get(int(chain_id), "ETH"),
            "decimals": NATIVE_DECIMALS,
        }

    async def get_token_balance(
        self,
        address: str,
        token_address: str,
        chain_id: int = DEFAULT_CHAIN_ID,
    ) -> Dict[str, Any]:
        """
        ERC-20 balanceOf and decimals for a holder.

        Returns:
            {"address", "tokenAddress", "chainId", "balance", "decimals"}

        Raises:
            ValidationError: Missing/malformed address(es) or unknown chain
            UpstreamError: RPC error member or an undecodable result
        """
        require_address(address)
        require_address(token_address, field="tokenAddress")

        call_data = ERC20_BALANCE_OF_SELECTOR + address[2:].lower().rjust(64, "0")
        balance, decimals = await asyncio.gather(
            self._rpc(chain_id, "eth_call", [{"to": token_address, "data": call_data}, "latest"]),
            self._rpc(chain_id, "eth_call", [{"to": token_address, "data": ERC20_DECIMALS_SELECTOR}, "latest"]),
        )

        return {
            "address": address,
            "tokenAddress": token_address,
            "chainId": int(chain_id),
            "balance": str(balance),
            "decimals": decimals,
        }
