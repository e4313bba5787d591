"""Provider record -> shared domain entity conversions"""

from .bank import categorize_transaction, normalize_account, normalize_transaction, normalize_transactions
from .onchain import format_balance, normalize_token_balance, build_portfolio
from .identity import normalize_identity

__all__ = [
    "categorize_transaction",
    "normalize_account",
    "normalize_transaction",
    "normalize_transactions",
    "format_balance",
    "normalize_token_balance",
    "build_portfolio",
    "normalize_identity"
]
