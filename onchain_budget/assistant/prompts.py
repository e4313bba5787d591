"""Prompt templates and context assembly for the assistant"""

import json
from typing import Any, Dict, List, Optional

from onchain_budget.constants import CONTEXT_HISTORY_TURNS, CONTEXT_TRANSACTION_LIMIT
from onchain_budget.models import ChatMessage

SYSTEM_PROMPT = """You are OnchainBudget GPT, an AI financial assistant that helps users understand and manage their money across onchain (crypto wallets) and offchain (traditional bank accounts) platforms.

Personality:
- Smart, casual and a little witty
- Warm and conversational
- Concise but informative
- Emojis sparingly

You can:
- Analyze wallet balances and portfolio value
- Analyze bank transactions and categorized spending
- Give spending insights, trends and budgeting advice
- Suggest charts for spending and portfolio breakdowns
- Explain crypto and DeFi concepts in simple terms

Guidelines:
- Ground every number you mention in the provided context; never invent balances or transactions
- If data is missing, say so and suggest connecting the relevant account
- Give actionable advice and be encouraging about financial goals
- Never ask for private keys, seed phrases or banking passwords"""

INSIGHTS_PROMPT = """Generate spending insights for this financial data:

Timeframe: {timeframe}
Total Spent: {total_spent:.2f}
Categories: {categories}
Transaction Count: {transaction_count}

Cover:
1. Key spending patterns
2. Largest expense categories
3. Potential savings opportunities
4. Budget recommendations
5. Trends and observations

Keep it conversational, insightful and encouraging. Use emojis sparingly."""


def build_context(snapshot, history: List[ChatMessage]) -> Dict[str, Any]:
    """
    Assemble the context payload for one chat turn.

    Args:
        snapshot: ReadModelSnapshot of the wallet's financial data
        history: Messages before the current user message

    Returns:
        Dictionary with walletData, onchainData, bankData,
        transactionHistory and sessionHistory
    """
    identity = snapshot.identity
    wallet_data = {
        "address": snapshot.wallet_address,
        "ensProfile": {
            "name": identity.name,
            "avatar": identity.avatar,
            "description": identity.description,
        } if identity else None,
    }

    onchain_data = None
    if snapshot.token_balances:
        portfolio = snapshot.portfolio
        onchain_data = {
            "tokenBalances": [
                {
                    "symbol": token.symbol,
                    "name": token.name,
                    "balance": token.balance_formatted,
                    "value": token.value or 0,
                    "isNative": token.is_native,
                }
                for token in snapshot.token_balances
            ],
            "portfolio": {
                "totalValue": portfolio.total_value,
                "totalChange24h": portfolio.total_change_24h,
                "tokenCount": len(portfolio.tokens),
            } if portfolio else None,
            "totalPortfolioValue": snapshot.total_portfolio_value,
        }

    bank_data = None
    if snapshot.accounts:
        bank_data = {
            "accounts": [
                {
                    "id": account.id,
                    "name": account.name,
                    "bankName": account.bank_name,
                    "balance": account.balance,
                    "currency": account.currency,
                    "type": account.type,
                }
                for account in snapshot.accounts
            ],
            "totalBalance": snapshot.total_balance,
            "connectedBanks": snapshot.connected_banks,
        }

    recent = snapshot.recent_transactions(CONTEXT_TRANSACTION_LIMIT)

    return {
        "walletData": wallet_data,
        "onchainData": onchain_data,
        "bankData": bank_data,
        "transactionHistory": [txn.model_dump(mode="json") for txn in recent],
        "sessionHistory": [
            f"{message.role.value}: {message.content}"
            for message in history[-CONTEXT_HISTORY_TURNS:]
        ],
    }


def build_prompt(user_message: str, context: Optional[Dict[str, Any]] = None) -> str:
    """
    Put a Context block ahead of the user's question.

    Empty context sections are left out; with nothing to say the prompt is
    the bare message.
    """
    if not context:
        return user_message

    sections = []
    if context.get("walletData"):
        sections.append(f"Wallet Info: {json.dumps(context['walletData'], indent=2)}")
    if context.get("onchainData"):
        sections.append(f"Onchain Info: {json.dumps(context['onchainData'], indent=2)}")
    if context.get("bankData"):
        sections.append(f"Bank Info: {json.dumps(context['bankData'], indent=2)}")
    if context.get("transactionHistory"):
        sections.append(f"Recent Transactions: {json.dumps(context['transactionHistory'], indent=2)}")
    if context.get("sessionHistory"):
        sections.append("Previous conversation: " + "\n".join(context["sessionHistory"]))

    if not sections:
        return user_message

    return "Context:\n" + "\n\n".join(sections) + f"\n\nUser Question: {user_message}"


def build_insights_prompt(
    categories: Dict[str, float],
    transaction_count: int,
    timeframe: str = "Last 30 days"
) -> str:
    return INSIGHTS_PROMPT.format(
        timeframe=timeframe,
        total_spent=sum(categories.values()),
        categories=json.dumps(categories, indent=2),
        transaction_count=transaction_count,
    )
