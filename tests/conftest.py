"""Shared fixtures: fake provider sources, fake LLM and an in-memory store."""

import os
from datetime import datetime, timedelta

import pytest

os.environ.setdefault("STATE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from onchain_budget.adapters import BankDataSource, ChainDataSource, IdentitySource
from onchain_budget.constants import TransactionType
from onchain_budget.facade import FinancialAggregator
from onchain_budget.models import BankAccount, BankTransaction, IdentityProfile
from onchain_budget.normalizers import normalize_token_balance
from onchain_budget.persistence import SessionStore
from onchain_budget.utils.errors import LLMError, SessionStoreError, TransportError, UpstreamError

WALLET = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"

TOKENS = {
    1: [
        {"address": "", "symbol": "ETH", "name": "Ethereum", "decimals": 18, "is_native": True, "price_usd": 3000.0},
        {"address": USDC, "symbol": "USDC", "name": "USD Coin", "decimals": 6, "is_native": False, "price_usd": 1.0},
        {"address": USDT, "symbol": "USDT", "name": "Tether USD", "decimals": 6, "is_native": False, "price_usd": 1.0},
    ]
}

RAW_BALANCES = {
    "ETH": "2000000000000000000",  # 2 ETH
    "USDC": "1500000",             # 1.5 USDC
    "USDT": "250000000",           # 250 USDT
}


def make_account(account_id="acc_1", balance=1000.0, bank_name="GTBank"):
    return BankAccount(
        id=account_id,
        name=f"Account {account_id}",
        type="SAVINGS_ACCOUNT",
        balance=balance,
        currency="NGN",
        account_number="0131883461",
        bank_name=bank_name,
    )


def make_transaction(txn_id, account_id="acc_1", amount=100.0, txn_type=TransactionType.EXPENSE,
                     category="Other", days_ago=1, description=""):
    return BankTransaction(
        id=txn_id,
        account_id=account_id,
        amount=amount,
        type=txn_type,
        category=category,
        description=description,
        date=datetime(2025, 2, 20) - timedelta(days=days_ago),
    )


class FakeBankSource(BankDataSource):
    """Bank source serving canned accounts and transactions."""

    def __init__(self, accounts=None, transactions=None):
        self.accounts = accounts or {}
        self.transactions = transactions or {}
        self.failing = set()
        self.calls = []

    async def get_account(self, account_id):
        if account_id in self.failing or account_id not in self.accounts:
            raise UpstreamError("mono", 404, {"message": "Account not found"})
        return self.accounts[account_id]

    async def get_transactions(self, account_id, start=None, end=None, limit=50):
        self.calls.append({"account_id": account_id, "start": start, "end": end, "limit": limit})
        if account_id in self.failing:
            raise TransportError("mono", "timed out")
        return list(self.transactions.get(account_id, []))


class FakeChainSource(ChainDataSource):
    """Chain source; symbols in `failing` raise an upstream error."""

    def __init__(self, raw_balances=None):
        self.raw_balances = dict(raw_balances or RAW_BALANCES)
        self.failing = set()

    async def get_token_balance(self, address, chain_id, token):
        if token["symbol"] in self.failing:
            raise UpstreamError("rpc", 502, {"code": -32000, "message": "execution reverted"})
        return normalize_token_balance(token, self.raw_balances[token["symbol"]])


class FakeIdentitySource(IdentitySource):
    def __init__(self, profile=None):
        self.profile = profile
        self.error = None

    async def get_profile(self, address):
        if self.error:
            raise self.error
        return self.profile


class FakeLLM:
    """Stands in for LLMClient; records prompts and replies or raises."""

    def __init__(self, reply="Here's what I found.", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def complete(self, prompt, system_prompt=None, purpose="chat"):
        self.prompts.append({"prompt": prompt, "system_prompt": system_prompt, "purpose": purpose})
        if self.error:
            raise self.error
        return self.reply

    async def close(self):
        pass


class FailingMessageStore(SessionStore):
    """In-memory store whose message writes always fail."""

    async def store_chat_message(self, session_id, message):
        raise SessionStoreError("Redis unavailable")


@pytest.fixture
def bank_source():
    return FakeBankSource(
        accounts={"acc_1": make_account("acc_1"), "acc_2": make_account("acc_2", balance=500.0, bank_name="Kuda")},
        transactions={
            "acc_1": [
                make_transaction("t1", "acc_1", 1500.0, category="Subscriptions", description="Monthly Netflix subscription"),
                make_transaction("t2", "acc_1", 50000.0, TransactionType.INCOME, category="Income", days_ago=2),
            ],
            "acc_2": [
                make_transaction("t3", "acc_2", 4200.0, category="Food & Dining", days_ago=3),
            ],
        },
    )


@pytest.fixture
def chain_source():
    return FakeChainSource()


@pytest.fixture
def identity_source():
    return FakeIdentitySource(IdentityProfile(name="vitalik.eth", address=WALLET))


@pytest.fixture
def store():
    return SessionStore(backend="memory")


@pytest.fixture
def aggregator(bank_source, chain_source, identity_source, store):
    return FinancialAggregator(
        wallet_address=WALLET,
        bank_source=bank_source,
        chain_source=chain_source,
        identity_source=identity_source,
        store=store,
        supported_tokens=TOKENS,
    )


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def failing_llm():
    return FakeLLM(error=LLMError("LLM API call failed after 3 attempts: timeout"))
