"""Chat session routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from onchain_budget.api.dependencies import get_container
from onchain_budget.api.schemas import SendMessageRequest, StartSessionRequest
from onchain_budget.assistant import AssistantBridge
from onchain_budget.container import AppContainer

router = APIRouter(prefix="/chat", tags=["Chat"])


def _session_payload(bridge: AssistantBridge) -> dict:
    return {
        "session_id": bridge.session_id,
        "wallet_address": bridge.wallet_address,
        "is_typing": bridge.is_typing,
        "messages": [message.model_dump(mode="json") for message in bridge.messages],
    }


@router.post("/sessions")
async def start_session(payload: StartSessionRequest, container: AppContainer = Depends(get_container)):
    """Attach to (or create) the wallet's session."""
    bridge = await container.get_bridge(payload.wallet_address)
    return _session_payload(bridge)


@router.get("/sessions/{wallet_address}/messages")
async def list_messages(wallet_address: str, container: AppContainer = Depends(get_container)):
    bridge = await container.get_bridge(wallet_address)
    return _session_payload(bridge)


@router.post("/sessions/{wallet_address}/messages")
async def send_message(
    wallet_address: str,
    payload: SendMessageRequest,
    container: AppContainer = Depends(get_container),
):
    """Run one chat turn; 409 while the previous turn is still awaiting its reply."""
    bridge = await container.get_bridge(wallet_address)
    reply = await bridge.send_message(payload.content)
    return {"reply": reply.model_dump(mode="json"), **_session_payload(bridge)}


@router.delete("/sessions/{wallet_address}")
async def clear_chat(wallet_address: str, container: AppContainer = Depends(get_container)):
    bridge = await container.get_bridge(wallet_address)
    await bridge.clear_chat()
    return _session_payload(bridge)


@router.get("/sessions/{wallet_address}/insights")
async def spending_insights(
    wallet_address: str,
    account_id: Optional[str] = Query(None),
    container: AppContainer = Depends(get_container),
):
    bridge = await container.get_bridge(wallet_address)
    return {"insights": await bridge.generate_spending_insights(account_id)}
