"""On-chain balance, portfolio and identity data models"""

from pydantic import BaseModel, Field
from typing import Optional, List


class TokenBalance(BaseModel):
    """Balance of one token (or the native asset) for a wallet"""

    address: str = Field("", description="Token contract address, empty for the native asset")
    symbol: str = Field(..., description="Ticker symbol")
    name: str = Field(..., description="Human-readable token name")
    balance: str = Field(..., description="Raw balance in base units (integer string)")
    balance_formatted: str = Field(..., description="balance / 10**decimals, fixed precision")
    decimals: int = Field(..., ge=0, description="Token decimals")
    is_native: bool = Field(False, description="True for the chain's base currency")
    price: Optional[float] = Field(None, description="USD price")
    change_24h: Optional[float] = Field(None, description="24h price change (percent)")
    value: Optional[float] = Field(None, ge=0, description="USD value of the balance")

    class Config:
        json_schema_extra = {
            "example": {
                "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
                "symbol": "USDC",
                "name": "USD Coin",
                "balance": "1500000",
                "balance_formatted": "1.500000",
                "decimals": 6,
                "is_native": False,
                "price": 1.0,
                "value": 1.5
            }
        }


class Portfolio(BaseModel):
    """Aggregate of token balances for one wallet on one chain"""

    total_value: float = Field(0.0, ge=0, description="Sum of token values in USD")
    total_change_24h: float = Field(0.0, description="Value-weighted 24h change (percent)")
    tokens: List[TokenBalance] = Field(default_factory=list, description="Token balances")


class IdentityProfile(BaseModel):
    """ENS-style identity for an address"""

    name: str = Field(..., description="Primary name (e.g. vitalik.eth)")
    address: str = Field(..., description="Canonical address")
    avatar: Optional[str] = Field(None, description="Avatar URI")
    description: Optional[str] = Field(None, description="Free-text description")
    twitter: Optional[str] = Field(None, description="Twitter/X handle")
    github: Optional[str] = Field(None, description="GitHub handle")
    website: Optional[str] = Field(None, description="Website URL")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "vitalik.eth",
                "address": "0xd8da6bf26964af9d7eed9e03e53415d37aa96045",
                "avatar": "https://metadata.ens.domains/mainnet/avatar/vitalik.eth",
                "description": "Ethereum co-founder",
                "twitter": "VitalikButerin",
                "website": "https://vitalik.ca"
            }
        }
