"""Bank account and transaction data models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from onchain_budget.constants import TransactionType


class BankAccount(BaseModel):
    """Linked external bank account"""

    id: str = Field(..., description="Provider account ID")
    name: str = Field(..., description="Account display name")
    type: str = Field("", description="Account type (savings, current, ...)")
    balance: float = Field(0.0, description="Current balance")
    currency: str = Field("NGN", description="ISO currency code")
    account_number: str = Field("", description="Masked or full account number")
    bank_name: str = Field("", description="Institution name")
    is_connected: bool = Field(True, description="Whether the link is live")
    last_synced: Optional[datetime] = Field(None, description="Last successful sync")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5f171a530295e231abca1153",
                "name": "SAMUEL OLAMIDE NOMO",
                "type": "SAVINGS_ACCOUNT",
                "balance": 3150.0,
                "currency": "NGN",
                "account_number": "0131883461",
                "bank_name": "GTBank",
                "is_connected": True,
                "last_synced": "2025-02-03T10:00:00Z"
            }
        }


class BankTransaction(BaseModel):
    """Normalized bank transaction (immutable once fetched)"""

    id: str = Field(..., description="Provider transaction ID")
    account_id: str = Field(..., description="Owning bank account ID")
    amount: float = Field(..., ge=0, description="Absolute amount")
    type: TransactionType = Field(..., description="income or expense")
    category: str = Field(..., description="Derived category")
    description: str = Field("", description="Provider narration")
    date: datetime = Field(..., description="Transaction date")
    currency: Optional[str] = Field(None, description="ISO currency code")
    balance: Optional[float] = Field(None, description="Running balance after the transaction")
    reference: Optional[str] = Field(None, description="Provider reference")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "5f171a540295e231abca1154",
                "account_id": "5f171a530295e231abca1153",
                "amount": 1500.0,
                "type": "expense",
                "category": "Subscriptions",
                "description": "Monthly Netflix subscription",
                "date": "2025-02-03T10:00:00Z",
                "currency": "NGN"
            }
        }
