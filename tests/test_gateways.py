"""Tests for provider gateways against a mocked HTTP transport."""

import asyncio
import json

import httpx
import pytest

from onchain_budget.gateways import EnsGateway, MonoGateway, OnchainGateway
from onchain_budget.utils.errors import TransportError, UpstreamError, ValidationError

from conftest import USDC, WALLET


def run(coro):
    return asyncio.run(coro)


def test_mono_get_account_sends_secret_header():
    """Test the secret key travels in the mono-sec-key header."""
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("mono-sec-key")
        return httpx.Response(200, json={"account": {"_id": "acc_1", "name": "Main"}})

    gateway = MonoGateway("live_sk_test", transport=httpx.MockTransport(handler))
    payload = run(gateway.get_account("acc_1"))

    assert payload["account"]["_id"] == "acc_1"
    assert seen["url"] == "https://api.withmono.com/accounts/acc_1"
    assert seen["key"] == "live_sk_test"


def test_mono_get_transactions_query_params():
    """Test limit, start and end are forwarded as query parameters."""
    from datetime import date

    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"paging": {"total": 0}, "data": []})

    gateway = MonoGateway("sk", transport=httpx.MockTransport(handler))
    run(gateway.get_transactions("acc_1", limit=100, start=date(2025, 1, 1), end="2025-01-31"))

    assert seen["params"] == {"limit": "100", "start": "2025-01-01", "end": "2025-01-31"}


def test_mono_transactions_default_limit():
    """Test the default page size is 50 and dates are omitted when absent."""
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"data": []})

    gateway = MonoGateway("sk", transport=httpx.MockTransport(handler))
    run(gateway.get_transactions("acc_1"))

    assert seen["params"] == {"limit": "50"}


def test_mono_upstream_error_passthrough():
    """Test non-success statuses surface with the provider body attached."""
    def handler(request):
        return httpx.Response(401, json={"message": "Invalid secret key"})

    gateway = MonoGateway("bad", transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as exc_info:
        run(gateway.get_account("acc_1"))

    assert exc_info.value.status_code == 401
    assert exc_info.value.body == {"message": "Invalid secret key"}


def test_mono_transport_error_is_distinct():
    """Test network failures are TransportError, not UpstreamError."""
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    gateway = MonoGateway("sk", transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError):
        run(gateway.get_account("acc_1"))


def test_mono_rejects_missing_account_id_before_network():
    """Test validation happens before any request is sent."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    gateway = MonoGateway("sk", transport=httpx.MockTransport(handler))

    with pytest.raises(ValidationError):
        run(gateway.get_account(""))
    assert calls == []


def rpc_handler(results, seen=None):
    """JSON-RPC responder keyed by method (and call data for eth_call)."""
    def handler(request):
        body = json.loads(request.content)
        if seen is not None:
            seen.append(body)
        key = body["method"]
        if key == "eth_call":
            key = body["params"][0]["data"][:10]
        result = results[key]
        if isinstance(result, dict):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": result})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})
    return handler


def test_native_balance():
    """Test eth_getBalance result is decoded to a wei string."""
    seen = []
    handler = rpc_handler({"eth_getBalance": hex(2 * 10 ** 18)}, seen)
    gateway = OnchainGateway({1: "https://rpc.example"}, {1: "ETH"}, transport=httpx.MockTransport(handler))

    data = run(gateway.get_native_balance(WALLET, 1))

    assert data == {
        "address": WALLET,
        "chainId": 1,
        "balance": "2000000000000000000",
        "symbol": "ETH",
        "decimals": 18,
    }
    assert seen[0]["params"] == [WALLET, "latest"]


def test_token_balance_uses_balance_of_and_decimals():
    """Test balanceOf call data and decimals decoding."""
    seen = []
    handler = rpc_handler({"0x70a08231": hex(1_500_000), "0x313ce567": hex(6)}, seen)
    gateway = OnchainGateway({1: "https://rpc.example"}, transport=httpx.MockTransport(handler))

    data = run(gateway.get_token_balance(WALLET, USDC, 1))

    assert data["balance"] == "1500000"
    assert data["decimals"] == 6
    balance_call = next(b for b in seen if b["params"][0]["data"].startswith("0x70a08231"))
    assert balance_call["params"][0]["to"] == USDC
    assert balance_call["params"][0]["data"] == "0x70a08231" + WALLET[2:].rjust(64, "0")


def test_rpc_error_member_is_upstream_error():
    """Test a JSON-RPC error object maps to UpstreamError."""
    handler = rpc_handler({"eth_getBalance": {"code": -32005, "message": "rate limited"}})
    gateway = OnchainGateway({1: "https://rpc.example"}, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as exc_info:
        run(gateway.get_native_balance(WALLET, 1))

    assert exc_info.value.status_code == 502
    assert exc_info.value.body["code"] == -32005


def test_undecodable_rpc_result_is_upstream_error():
    """Test a non-hex result maps to UpstreamError instead of a ValueError."""
    handler = rpc_handler({"0x70a08231": "garbage", "0x313ce567": hex(6)})
    gateway = OnchainGateway({1: "https://rpc.example"}, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as exc_info:
        run(gateway.get_token_balance(WALLET, USDC, 1))

    assert exc_info.value.status_code == 502
    assert exc_info.value.body["result"] == "garbage"


def test_undecodable_token_result_skips_only_that_token(store):
    """Test one token with a garbage RPC result leaves the other balances intact."""
    from onchain_budget.adapters import RpcChainSource
    from onchain_budget.facade import FinancialAggregator
    from conftest import TOKENS, FakeBankSource, FakeIdentitySource

    def handler(request):
        body = json.loads(request.content)
        if body["method"] == "eth_getBalance":
            result = hex(10 ** 18)
        elif body["params"][0]["data"] == "0x313ce567":
            result = hex(6)
        elif body["params"][0]["to"] == USDC:
            result = "garbage"
        else:
            result = hex(250_000_000)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    gateway = OnchainGateway({1: "https://rpc.example"}, transport=httpx.MockTransport(handler))
    aggregator = FinancialAggregator(
        wallet_address=WALLET,
        bank_source=FakeBankSource(),
        chain_source=RpcChainSource(gateway),
        identity_source=FakeIdentitySource(),
        store=store,
        supported_tokens=TOKENS,
    )

    balances = run(aggregator.refresh_balances(WALLET, 1))

    assert [b.symbol for b in balances] == ["ETH", "USDT"]
    assert balances[1].balance_formatted == "250.000000"


def test_onchain_validation():
    """Test malformed addresses and unknown chains are rejected."""
    gateway = OnchainGateway({1: "https://rpc.example"}, transport=httpx.MockTransport(lambda r: httpx.Response(500)))

    with pytest.raises(ValidationError, match="Invalid address format"):
        run(gateway.get_native_balance("0xd8da6bf2", 1))

    with pytest.raises(ValidationError, match="tokenAddress is required"):
        run(gateway.get_token_balance(WALLET, "", 1))

    with pytest.raises(ValidationError, match="Unsupported chainId"):
        run(gateway.get_native_balance(WALLET, 5))


def test_ens_profile_found():
    """Test a resolved address returns the provider record."""
    def handler(request):
        assert str(request.url) == f"https://api.ensdata.net/{WALLET}"
        return httpx.Response(200, json={"address": WALLET, "ens_primary": "vitalik.eth"})

    gateway = EnsGateway(transport=httpx.MockTransport(handler))

    assert run(gateway.get_profile(WALLET))["ens_primary"] == "vitalik.eth"


def test_ens_not_found_is_none():
    """Test a 404 means no profile rather than an error."""
    gateway = EnsGateway(transport=httpx.MockTransport(lambda r: httpx.Response(404, json={"error": "not found"})))

    assert run(gateway.get_profile(WALLET)) is None


def test_ens_server_error_propagates():
    """Test other provider errors still surface."""
    gateway = EnsGateway(transport=httpx.MockTransport(lambda r: httpx.Response(503, text="unavailable")))

    with pytest.raises(UpstreamError) as exc_info:
        run(gateway.get_profile(WALLET))

    assert exc_info.value.body == "unavailable"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
