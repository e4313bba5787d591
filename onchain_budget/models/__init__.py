"""Data models for the budget assistant"""

from .bank import BankAccount, BankTransaction
from .onchain import TokenBalance, Portfolio, IdentityProfile
from .chat import ChatMessage, SuggestedAction, Session

__all__ = [
    "BankAccount",
    "BankTransaction",
    "TokenBalance",
    "Portfolio",
    "IdentityProfile",
    "ChatMessage",
    "SuggestedAction",
    "Session"
]
