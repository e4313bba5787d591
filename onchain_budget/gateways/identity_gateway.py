"""ENS identity lookup gateway"""

from typing import Any, Dict, Optional

import httpx

from onchain_budget.constants import HTTP_TIMEOUT_SECONDS
from onchain_budget.gateways.base import ProviderGateway
from onchain_budget.utils.errors import UpstreamError
from onchain_budget.utils.validation import require_address

ENS_API_URL = "https://api.ensdata.net"


class EnsGateway(ProviderGateway):
    """Reverse-resolves an address to its ENS record."""

    provider = "ens"

    def __init__(
        self,
        base_url: str = ENS_API_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    async def get_profile(self, address: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the raw ENS record for an address.

        Returns:
            Provider record, or None when the address has no name

        Raises:
            ValidationError: Malformed address
            UpstreamError: Provider error other than "not found"
            TransportError: Provider unreachable
        """
        require_address(address)

        try:
            record = await self._request("GET", f"{self.base_url}/{address}")
        except UpstreamError as e:
            if e.status_code == 404:
                return None
            raise

        if not record or not (record.get("ens_primary") or record.get("ens") or record.get("name")):
            return None
        return record
