"""Mono bank-aggregation gateway"""

from datetime import date, datetime
from typing import Any, Dict, Optional, Union

import httpx

from onchain_budget.constants import DEFAULT_TRANSACTION_LIMIT, HTTP_TIMEOUT_SECONDS
from onchain_budget.gateways.base import ProviderGateway
from onchain_budget.utils.validation import require_account_id

MONO_API_URL = "https://api.withmono.com"

DateLike = Union[date, datetime, str]


class MonoGateway(ProviderGateway):
    """Proxy for the Mono accounts API; the secret key never leaves the server."""

    provider = "mono"

    def __init__(
        self,
        secret_key: str,
        base_url: str = MONO_API_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "mono-sec-key": secret_key or "",
            },
            transport=transport,
        )

    async def get_account(self, account_id: str) -> Dict[str, Any]:
        """
        Fetch the provider's account record.

        Raises:
            ValidationError: If account_id is missing
            UpstreamError: Mono returned a non-success status
            TransportError: Mono could not be reached
        """
        account_id = require_account_id(account_id)
        return await self._request("GET", f"{self.base_url}/accounts/{account_id}")

    async def get_transactions(
        self,
        account_id: str,
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> Dict[str, Any]:
        """
        Fetch the provider's transaction page for an account.

        Args:
            account_id: Mono account ID
            limit: Page size
            start: Inclusive start date (YYYY-MM-DD)
            end: Inclusive end date (YYYY-MM-DD)

        Returns:
            Provider payload ({"paging": ..., "data": [...]})
        """
        account_id = require_account_id(account_id)

        params = {"limit": str(limit)}
        if start:
            params["start"] = _format_date(start)
        if end:
            params["end"] = _format_date(end)

        return await self._request(
            "GET",
            f"{self.base_url}/accounts/{account_id}/transactions",
            params=params,
        )


def _format_date(value: DateLike) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)
