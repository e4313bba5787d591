"""Constants and enums for the budget assistant"""

from enum import Enum


class TransactionType(str, Enum):
    """Direction of a bank transaction"""
    INCOME = "income"
    EXPENSE = "expense"


class MessageRole(str, Enum):
    """Chat message sender"""
    USER = "user"
    ASSISTANT = "assistant"


class ActionTier(str, Enum):
    """Visual emphasis of a suggested action"""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    OUTLINE = "outline"


class ChatState(str, Enum):
    """Per-turn chat state machine"""
    IDLE = "idle"
    AWAITING_AI_REPLY = "awaiting_ai_reply"


# Ordered (keywords -> category) rules; first match wins
CATEGORY_RULES = (
    (("transfer", "send"), "Transfer"),
    (("atm", "withdrawal"), "Cash Withdrawal"),
    (("grocery", "supermarket"), "Groceries"),
    (("fuel", "gas", "petrol"), "Transportation"),
    (("restaurant", "food", "dining"), "Food & Dining"),
    (("subscription", "netflix", "spotify"), "Subscriptions"),
    (("salary", "payroll"), "Income"),
    (("bill", "utility", "electricity"), "Bills & Utilities"),
    (("shopping", "amazon", "store"), "Shopping"),
    (("medical", "hospital", "pharmacy"), "Healthcare"),
)
DEFAULT_CATEGORY = "Other"

# Suggested actions, scanned against the user's message in this order
ACTION_RULES = (
    (("wallet", "crypto", "balance"), "connect-wallet", "Connect Wallet", ActionTier.PRIMARY),
    (("spending", "budget", "bank"), "connect-bank", "Connect Bank", ActionTier.SECONDARY),
    (("portfolio", "investment", "holdings"), "view-portfolio", "View Portfolio", ActionTier.SECONDARY),
    (("chart", "graph", "breakdown", "analysis"), "generate-chart", "Generate Chart", ActionTier.OUTLINE),
)

# Bank refresh window
TRANSACTION_WINDOW_DAYS = 30
TRANSACTION_FETCH_LIMIT = 100
DEFAULT_TRANSACTION_LIMIT = 50

# On-chain defaults
DEFAULT_CHAIN_ID = 1
BALANCE_DISPLAY_DECIMALS = 6
ERC20_BALANCE_OF_SELECTOR = "0x70a08231"

# Assistant context limits
CONTEXT_TRANSACTION_LIMIT = 20
CONTEXT_HISTORY_TURNS = 5
CHAT_HISTORY_LIMIT = 50

FALLBACK_MESSAGE = (
    "I'm having trouble processing your request right now. "
    "Could you try asking again? 🤔"
)
INSIGHTS_FALLBACK_MESSAGE = (
    "I couldn't generate spending insights right now, but your financial data "
    "looks interesting! Try connecting your accounts for better analysis."
)
WELCOME_MESSAGE = (
    "Hey there! 👋 I'm OnchainBudget GPT, your AI financial assistant. I can help "
    "you track spending across your crypto wallets and traditional bank accounts. "
    "What would you like to know about your finances?"
)

# Network defaults
HTTP_TIMEOUT_SECONDS = 30
SESSION_TTL_SECONDS = 60 * 60 * 24 * 30  # 30 days
