"""
Shared HTTP plumbing for provider gateways.

Each gateway forwards one validated request to a third-party API and maps
the outcome into three shapes: the decoded JSON body, an UpstreamError
(provider said no), or a TransportError (provider could not be reached).
No retries happen here; retry policy belongs to the caller.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from onchain_budget.constants import HTTP_TIMEOUT_SECONDS
from onchain_budget.utils.errors import TransportError, UpstreamError
from onchain_budget.utils.logging import get_logger
from onchain_budget.utils.metrics import gateway_latency, gateway_requests

logger = get_logger(__name__)


class ProviderGateway:
    """
    Base class for stateless provider proxies.

    The httpx client is created lazily on first use and owned by the
    gateway until close() is called by the composition root.
    """

    provider = "provider"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = HTTP_TIMEOUT_SECONDS,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Provider API base URL
            timeout: Request timeout in seconds
            headers: Headers sent with every request (credentials live here)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=self.timeout,
                        headers=self._headers,
                        transport=self._transport,
                        limits=httpx.Limits(
                            max_connections=20,
                            max_keepalive_connections=10,
                        ),
                    )
        return self._client

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Send one request and decode the JSON body.

        Raises:
            UpstreamError: Provider returned a non-success status
            TransportError: Network-level failure or undecodable body
        """
        client = await self._ensure_client()
        start_time = time.time()

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            gateway_requests.labels(provider=self.provider, outcome="transport_error").inc()
            logger.error(f"{self.provider} request failed", url=url, error=str(e))
            raise TransportError(self.provider, str(e) or type(e).__name__)
        finally:
            gateway_latency.labels(provider=self.provider).observe(time.time() - start_time)

        if response.is_error:
            gateway_requests.labels(provider=self.provider, outcome="upstream_error").inc()
            body = _error_body(response)
            logger.warning(
                f"{self.provider} returned error status",
                url=url,
                status_code=response.status_code
            )
            raise UpstreamError(self.provider, response.status_code, body)

        try:
            payload = response.json()
        except ValueError as e:
            gateway_requests.labels(provider=self.provider, outcome="transport_error").inc()
            raise TransportError(self.provider, f"Invalid JSON response: {e}")

        gateway_requests.labels(provider=self.provider, outcome="success").inc()
        return payload

    async def close(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
