"""
Aggregation facade: the wallet's read model.

Bank accounts, transactions, token balances, portfolio and identity are
refreshed independently through the provider adapters. A failed refresh
records a human-readable error and leaves the previous data in place.

Every refresh takes a sequence number for its entity (per account for
transactions); a result that is no longer the latest issued is discarded,
so a slow superseded request can never overwrite newer data.
"""

import asyncio
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from onchain_budget.adapters import BankDataSource, ChainDataSource, IdentitySource
from onchain_budget.constants import (
    DEFAULT_CHAIN_ID,
    TRANSACTION_FETCH_LIMIT,
    TRANSACTION_WINDOW_DAYS,
    TransactionType,
)
from onchain_budget.models import BankAccount, BankTransaction, IdentityProfile, Portfolio, TokenBalance
from onchain_budget.normalizers import build_portfolio
from onchain_budget.persistence import SessionStore
from onchain_budget.utils.errors import BudgetAssistantError, NormalizationError, SessionStoreError
from onchain_budget.utils.logging import get_logger
from onchain_budget.utils.metrics import facade_refreshes, linked_bank_accounts, token_balance_failures
from onchain_budget.utils.validation import require_account_id, require_address

logger = get_logger(__name__)


class ReadModelSnapshot(BaseModel):
    """Point-in-time copy of the read model"""

    wallet_address: str
    accounts: List[BankAccount] = Field(default_factory=list)
    transactions: List[BankTransaction] = Field(default_factory=list)
    token_balances: List[TokenBalance] = Field(default_factory=list)
    portfolio: Optional[Portfolio] = None
    identity: Optional[IdentityProfile] = None
    error: Optional[str] = None
    total_balance: float = 0.0
    connected_banks: int = 0
    total_portfolio_value: float = 0.0
    total_spending: float = 0.0

    class Config:
        frozen = True

    def recent_transactions(self, limit: int) -> List[BankTransaction]:
        """Newest transactions across all accounts."""
        return sorted(self.transactions, key=lambda t: t.date, reverse=True)[:limit]


class FinancialAggregator:
    """Read model for one wallet, assembled from the bank, chain and identity sources."""

    def __init__(
        self,
        wallet_address: str,
        bank_source: BankDataSource,
        chain_source: ChainDataSource,
        identity_source: IdentitySource,
        store: SessionStore,
        supported_tokens: Dict[int, List[Dict[str, Any]]],
    ):
        self.wallet_address = require_address(wallet_address, "wallet_address")
        self.bank_source = bank_source
        self.chain_source = chain_source
        self.identity_source = identity_source
        self.store = store
        self.supported_tokens = supported_tokens

        self.accounts: List[BankAccount] = []
        self.transactions: List[BankTransaction] = []
        self.token_balances: List[TokenBalance] = []
        self.portfolio: Optional[Portfolio] = None
        self.identity: Optional[IdentityProfile] = None

        self.logger = logger.bind(wallet_address=self.wallet_address)
        self._issued: Dict[str, int] = defaultdict(int)
        # Outstanding error per refresh key, in the order they were recorded
        self._errors: Dict[str, str] = {}

    @property
    def error(self) -> Optional[str]:
        """Most recent outstanding refresh error, if any."""
        if not self._errors:
            return None
        return next(reversed(self._errors.values()))

    # Sequencing

    def _next_sequence(self, key: str) -> int:
        self._issued[key] += 1
        return self._issued[key]

    def _is_latest(self, key: str, sequence: int) -> bool:
        if self._issued[key] == sequence:
            return True
        facade_refreshes.labels(entity=key.split(':')[0], outcome='stale').inc()
        self.logger.info("Discarding superseded refresh", entity=key, sequence=sequence, latest=self._issued[key])
        return False

    def _record_failure(self, entity: str, message: str, error: Exception, key: Optional[str] = None) -> None:
        key = key or entity
        self._errors.pop(key, None)
        self._errors[key] = f"{message}: {error}"
        facade_refreshes.labels(entity=entity, outcome='failure').inc()
        self.logger.error(message, entity=entity, error=str(error), error_type=type(error).__name__)

    def _clear_failure(self, key: str) -> None:
        self._errors.pop(key, None)

    # Bank

    async def refresh_transactions(self, account_id: str) -> List[BankTransaction]:
        """
        Fetch the last 30 days (up to 100 records) for one account and
        replace that account's transaction subset.

        Args:
            account_id: Linked bank account ID

        Returns:
            The account's transactions after the refresh

        Raises:
            ValidationError: If account_id is blank
        """
        account_id = require_account_id(account_id)
        key = f"transactions:{account_id}"
        sequence = self._next_sequence(key)

        end = date.today()
        start = end - timedelta(days=TRANSACTION_WINDOW_DAYS)

        try:
            fetched = await self.bank_source.get_transactions(
                account_id, start=start, end=end, limit=TRANSACTION_FETCH_LIMIT
            )
        except BudgetAssistantError as e:
            if self._is_latest(key, sequence):
                self._record_failure('transactions', 'Failed to fetch transactions', e, key=key)
            return self.transactions_for(account_id)

        if not self._is_latest(key, sequence):
            return self.transactions_for(account_id)

        self.transactions = [t for t in self.transactions if t.account_id != account_id] + list(fetched)
        self._clear_failure(key)
        facade_refreshes.labels(entity='transactions', outcome='success').inc()
        self.logger.info("Refreshed transactions", account_id=account_id, count=len(fetched))
        return self.transactions_for(account_id)

    def transactions_for(self, account_id: str) -> List[BankTransaction]:
        return [t for t in self.transactions if t.account_id == account_id]

    async def connect_bank(self, account_id: str) -> BankAccount:
        """
        Handle a successful bank link: fetch the account, add it to the
        linked list, persist the list, then load its transactions.

        An account already linked is replaced in place of a duplicate entry.

        Raises:
            ValidationError: If account_id is blank
            UpstreamError, TransportError, NormalizationError: If the account
                cannot be fetched (also recorded in `error`)
        """
        account_id = require_account_id(account_id)

        try:
            account = await self.bank_source.get_account(account_id)
        except BudgetAssistantError as e:
            self._record_failure('accounts', 'Failed to connect bank account', e)
            raise

        self._clear_failure('accounts')
        self.accounts = [a for a in self.accounts if a.id != account.id] + [account]
        linked_bank_accounts.set(len(self.accounts))
        self.logger.info("Bank account connected", account_id=account.id, bank=account.bank_name)

        await self._persist_accounts()
        await self.refresh_transactions(account.id)
        return account

    async def disconnect_bank(self, account_id: str) -> None:
        """
        Unlink an account, purge its transactions and persist the list.

        Any in-flight transaction refresh for the account is superseded.
        """
        account_id = require_account_id(account_id)
        self._next_sequence(f"transactions:{account_id}")
        self._clear_failure(f"transactions:{account_id}")

        self.accounts = [a for a in self.accounts if a.id != account_id]
        self.transactions = [t for t in self.transactions if t.account_id != account_id]
        linked_bank_accounts.set(len(self.accounts))
        self.logger.info("Bank account disconnected", account_id=account_id)

        await self._persist_accounts()

    async def load_saved_accounts(self) -> List[BankAccount]:
        """Restore linked accounts from the session and refresh their transactions."""
        try:
            session = await self.store.get_session(self.wallet_address)
        except SessionStoreError as e:
            self._record_failure('accounts', 'Failed to load saved accounts', e)
            return self.accounts

        if session is None or not session.bank_accounts:
            return self.accounts

        accounts = []
        for stored in session.bank_accounts:
            try:
                accounts.append(BankAccount.model_validate(stored))
            except PydanticValidationError as e:
                missing = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
                self._record_failure(
                    'accounts',
                    'Failed to restore saved bank account',
                    NormalizationError("bank_account", missing)
                )

        self.accounts = accounts
        linked_bank_accounts.set(len(self.accounts))
        self.logger.info("Loaded saved bank accounts", count=len(self.accounts))

        await asyncio.gather(*(self.refresh_transactions(a.id) for a in self.accounts))
        return self.accounts

    async def _persist_accounts(self) -> None:
        try:
            await self.store.save_bank_accounts(self.wallet_address, self.accounts)
        except SessionStoreError as e:
            self._record_failure('accounts', 'Failed to save bank accounts', e)

    async def get_spending_summary(self, account_id: str, days: int = TRANSACTION_WINDOW_DAYS) -> Dict[str, float]:
        """
        Expense totals per category for one account over the last `days` days.

        Read-only: does not touch the read model. Failures yield {}.
        """
        end = date.today()
        start = end - timedelta(days=days)
        try:
            fetched = await self.bank_source.get_transactions(
                require_account_id(account_id), start=start, end=end, limit=TRANSACTION_FETCH_LIMIT
            )
        except BudgetAssistantError as e:
            self.logger.warning("Spending summary unavailable", account_id=account_id, error=str(e))
            return {}

        summary: Dict[str, float] = {}
        for txn in fetched:
            if txn.type == TransactionType.EXPENSE:
                summary[txn.category] = summary.get(txn.category, 0.0) + txn.amount
        return summary

    # Chain

    async def refresh_balances(self, address: str, chain_id: int = DEFAULT_CHAIN_ID) -> List[TokenBalance]:
        """
        Fetch every configured token balance on a chain.

        A token whose fetch fails is logged and left out; the others still land.

        Raises:
            ValidationError: If the address is malformed
        """
        address = require_address(address)
        key = "balances"
        sequence = self._next_sequence(key)
        tokens = list(self.supported_tokens.get(int(chain_id), []))

        results = await asyncio.gather(
            *(self.chain_source.get_token_balance(address, chain_id, token) for token in tokens),
            return_exceptions=True
        )

        balances = []
        for token, result in zip(tokens, results):
            if isinstance(result, Exception):
                token_balance_failures.labels(chain_id=str(chain_id), symbol=token.get('symbol', '?')).inc()
                self.logger.warning(
                    "Skipping token balance",
                    chain_id=chain_id,
                    symbol=token.get('symbol'),
                    error=str(result),
                    error_type=type(result).__name__
                )
                continue
            if isinstance(result, BaseException):
                raise result
            balances.append(result)

        if not self._is_latest(key, sequence):
            return self.token_balances

        self.token_balances = balances
        facade_refreshes.labels(entity='balances', outcome='success').inc()
        self.logger.info("Refreshed token balances", chain_id=chain_id, fetched=len(balances), configured=len(tokens))
        return self.token_balances

    async def refresh_portfolio(self, address: str, chain_id: int = DEFAULT_CHAIN_ID) -> Portfolio:
        """Refresh balances, then derive portfolio totals from them."""
        key = "portfolio"
        sequence = self._next_sequence(key)

        await self.refresh_balances(address, chain_id)

        if self._is_latest(key, sequence):
            self.portfolio = build_portfolio(self.token_balances)
            facade_refreshes.labels(entity='portfolio', outcome='success').inc()
        return self.portfolio

    # Identity

    async def refresh_identity(self, address: str) -> Optional[IdentityProfile]:
        """Fetch the identity profile; an address without one is a success with None."""
        address = require_address(address)
        key = "identity"
        sequence = self._next_sequence(key)

        try:
            profile = await self.identity_source.get_profile(address)
        except BudgetAssistantError as e:
            if self._is_latest(key, sequence):
                self._record_failure('identity', 'Failed to fetch identity', e)
            return self.identity

        if self._is_latest(key, sequence):
            self.identity = profile
            self._clear_failure(key)
            facade_refreshes.labels(entity='identity', outcome='success').inc()
        return self.identity

    # Derived values

    @property
    def total_balance(self) -> float:
        return sum(account.balance for account in self.accounts)

    @property
    def connected_banks(self) -> int:
        return sum(1 for account in self.accounts if account.is_connected)

    @property
    def total_portfolio_value(self) -> float:
        return self.portfolio.total_value if self.portfolio else 0.0

    @property
    def has_tokens(self) -> bool:
        return len(self.token_balances) > 0

    @property
    def total_spending(self) -> float:
        return sum(t.amount for t in self.transactions if t.type == TransactionType.EXPENSE)

    def snapshot(self) -> ReadModelSnapshot:
        return ReadModelSnapshot(
            wallet_address=self.wallet_address,
            accounts=[account.model_copy() for account in self.accounts],
            transactions=list(self.transactions),
            token_balances=list(self.token_balances),
            portfolio=self.portfolio,
            identity=self.identity,
            error=self.error,
            total_balance=self.total_balance,
            connected_banks=self.connected_banks,
            total_portfolio_value=self.total_portfolio_value,
            total_spending=self.total_spending,
        )
