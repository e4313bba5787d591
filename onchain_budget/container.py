"""Dependency container wiring gateways, adapters, store and AI client."""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from onchain_budget.adapters import (
    BankDataSource,
    ChainDataSource,
    EnsIdentitySource,
    IdentitySource,
    MonoBankSource,
    RpcChainSource,
)
from onchain_budget.assistant import AssistantBridge, LLMClient
from onchain_budget.constants import CHAT_HISTORY_LIMIT, HTTP_TIMEOUT_SECONDS
from onchain_budget.facade import FinancialAggregator
from onchain_budget.gateways import EnsGateway, MonoGateway, OnchainGateway
from onchain_budget.gateways.bank_gateway import MONO_API_URL
from onchain_budget.gateways.identity_gateway import ENS_API_URL
from onchain_budget.persistence import SessionStore
from onchain_budget.utils.config_loader import (
    get_assistant_config,
    get_native_symbols,
    get_rpc_urls,
    load_config,
)
from onchain_budget.utils.logging import get_logger
from onchain_budget.utils.validation import require_address

logger = get_logger(__name__)


@dataclass
class AppContainer:
    """
    Owns every shared client from application startup to shutdown.

    Read models and chat bridges are created per wallet on first use and
    live as long as the container.
    """

    config: Dict[str, Any]
    bank_gateway: MonoGateway
    chain_gateway: OnchainGateway
    identity_gateway: EnsGateway
    bank_source: BankDataSource
    chain_source: ChainDataSource
    identity_source: IdentitySource
    store: SessionStore
    llm: LLMClient
    aggregators: Dict[str, FinancialAggregator] = field(default_factory=dict)
    bridges: Dict[str, AssistantBridge] = field(default_factory=dict)
    _bridge_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def from_env(
        cls,
        config: Optional[Dict[str, Any]] = None,
        store: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "AppContainer":
        """
        Build the container from config/app.yaml and environment variables.

        Args:
            config: Preloaded configuration (defaults to load_config())
            store: Session store (defaults to SessionStore.from_env())
            transport: httpx transport shared by all gateways (tests)
        """
        config = config or load_config()
        timeout = float(os.getenv("HTTP_TIMEOUT_SECONDS", HTTP_TIMEOUT_SECONDS))

        if not os.getenv("MONO_SECRET_KEY"):
            logger.warning("MONO_SECRET_KEY not set; bank requests will be rejected upstream")

        bank_gateway = MonoGateway(
            secret_key=os.getenv("MONO_SECRET_KEY", ""),
            base_url=os.getenv("MONO_API_URL", MONO_API_URL),
            timeout=timeout,
            transport=transport,
        )
        chain_gateway = OnchainGateway(
            rpc_urls=get_rpc_urls(config),
            native_symbols=get_native_symbols(config),
            timeout=timeout,
            transport=transport,
        )
        identity_gateway = EnsGateway(
            base_url=os.getenv("ENS_API_URL", ENS_API_URL),
            timeout=timeout,
            transport=transport,
        )

        assistant_config = get_assistant_config(config)
        llm = LLMClient(
            model=os.getenv("DEFAULT_LLM_MODEL") or assistant_config.get("model"),
            temperature=float(assistant_config.get("temperature", 0.7)),
            max_tokens=int(assistant_config.get("max_tokens", 1024)),
        )

        return cls(
            config=config,
            bank_gateway=bank_gateway,
            chain_gateway=chain_gateway,
            identity_gateway=identity_gateway,
            bank_source=MonoBankSource(bank_gateway),
            chain_source=RpcChainSource(chain_gateway),
            identity_source=EnsIdentitySource(identity_gateway),
            store=store or SessionStore.from_env(),
            llm=llm,
        )

    @property
    def supported_tokens(self) -> Dict[int, Any]:
        return {int(k): v for k, v in self.config.get('supported_tokens', {}).items()}

    @property
    def history_limit(self) -> int:
        return int(get_assistant_config(self.config).get("history_limit", CHAT_HISTORY_LIMIT))

    async def start(self) -> None:
        await self.store.connect()
        logger.info("Container started", state_backend=self.store.backend)

    async def close(self) -> None:
        for client in (self.bank_gateway, self.chain_gateway, self.identity_gateway, self.llm, self.store):
            await client.close()
        logger.info("Container closed")

    def get_aggregator(self, wallet_address: str) -> FinancialAggregator:
        """The wallet's read model, created on first use."""
        key = require_address(wallet_address, "wallet_address").lower()
        if key not in self.aggregators:
            self.aggregators[key] = FinancialAggregator(
                wallet_address=key,
                bank_source=self.bank_source,
                chain_source=self.chain_source,
                identity_source=self.identity_source,
                store=self.store,
                supported_tokens=self.supported_tokens,
            )
        return self.aggregators[key]

    async def get_bridge(self, wallet_address: str) -> AssistantBridge:
        """The wallet's chat bridge; a new bridge attaches to its session."""
        key = require_address(wallet_address, "wallet_address").lower()
        async with self._bridge_lock:
            if key not in self.bridges:
                bridge = AssistantBridge(
                    wallet_address=key,
                    aggregator=self.get_aggregator(key),
                    llm=self.llm,
                    store=self.store,
                    history_limit=self.history_limit,
                )
                await bridge.start_session()
                self.bridges[key] = bridge
        return self.bridges[key]
