"""Chat message and session data models"""

import uuid
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict, Any
from onchain_budget.constants import MessageRole, ActionTier


class SuggestedAction(BaseModel):
    """Button suggested alongside an assistant reply"""

    id: str = Field(..., description="Action ID (connect-bank, view-portfolio, ...)")
    label: str = Field(..., description="Button label")
    type: ActionTier = Field(ActionTier.SECONDARY, description="Visual emphasis tier")


class ChatMessage(BaseModel):
    """One message in the append-only chat sequence"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Message ID")
    role: MessageRole = Field(..., description="user or assistant")
    content: str = Field(..., description="Message text")
    timestamp: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    actions: Optional[List[SuggestedAction]] = Field(None, description="Suggested actions")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "b7f0c1e2-5d1a-4a8e-9f3c-2d6e8a1b4c7d",
                "role": "assistant",
                "content": "You spent 42,000 NGN on food this month.",
                "timestamp": "2025-02-06T10:00:05Z",
                "actions": [
                    {"id": "generate-chart", "label": "Generate Chart", "type": "outline"}
                ]
            }
        }


class Session(BaseModel):
    """Chat session owned by one wallet"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Session ID")
    wallet_address: str = Field(..., description="Owning wallet address")
    session_data: Dict[str, Any] = Field(default_factory=dict, description="Linked bank accounts and other state")
    preferences: Optional[Dict[str, Any]] = Field(None, description="User preferences")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    @property
    def bank_accounts(self) -> List[Dict[str, Any]]:
        return list(self.session_data.get("bank_accounts") or [])
