"""Request bodies for the chat and dashboard routes"""

from pydantic import BaseModel, Field


class StartSessionRequest(BaseModel):
    wallet_address: str = Field(..., description="Connected wallet address")

    class Config:
        json_schema_extra = {
            "example": {"wallet_address": "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"}
        }


class SendMessageRequest(BaseModel):
    content: str = Field(..., description="User message text")

    class Config:
        json_schema_extra = {
            "example": {"content": "How much did I spend on food this month?"}
        }


class ConnectBankRequest(BaseModel):
    account_id: str = Field(..., description="Account ID returned by the bank link flow")

    class Config:
        json_schema_extra = {
            "example": {"account_id": "5f171a530295e231abca1153"}
        }
