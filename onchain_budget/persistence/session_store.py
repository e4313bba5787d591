"""Redis-backed session and chat message persistence."""

import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from onchain_budget.constants import CHAT_HISTORY_LIMIT, SESSION_TTL_SECONDS
from onchain_budget.models import BankAccount, ChatMessage, Session
from onchain_budget.utils.errors import SessionStoreError
from onchain_budget.utils.logging import get_logger
from onchain_budget.utils.metrics import session_store_healthy

import redis.asyncio as redis

logger = get_logger(__name__)


class SessionStore:
    """
    Sessions keyed by wallet address, messages keyed by session id.

    Two backends: "redis" for deployments and "memory" for development and
    tests. A redis backend that cannot be reached at connect() time falls
    back to memory.
    """

    def __init__(self, backend: str = "memory", redis_client: Optional[redis.Redis] = None):
        self.backend = backend
        self.redis_client = redis_client
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._session_index: Dict[str, str] = {}
        self._messages: Dict[str, List[Dict[str, Any]]] = {}

    @classmethod
    def from_env(cls) -> "SessionStore":
        """Build a store from STATE_BACKEND / REDIS_HOST / REDIS_DB."""
        backend = os.getenv("STATE_BACKEND", "redis")
        if backend != "redis":
            logger.info(f"Using in-memory session backend ({backend} mode)")
            return cls(backend="memory")

        redis_host, redis_port = os.getenv("REDIS_HOST", "localhost:6379").split(':')
        client = redis.Redis(
            host=redis_host,
            port=int(redis_port),
            db=int(os.getenv("REDIS_DB", 0)),
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5
        )
        return cls(backend="redis", redis_client=client)

    async def connect(self) -> None:
        """Ping Redis; fall back to memory when it is unreachable."""
        if self.backend != "redis":
            session_store_healthy.set(1)
            return

        try:
            await self.redis_client.ping()
            session_store_healthy.set(1)
            logger.info("Connected to Redis session store")
        except Exception as e:
            logger.warning(f"Redis connection failed, falling back to in-memory: {e}")
            session_store_healthy.set(0)
            await self.redis_client.aclose()
            self.redis_client = None
            self.backend = "memory"

    async def close(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()
            self.redis_client = None

    # Sessions

    async def get_session(self, wallet_address: str) -> Optional[Session]:
        """Active session for a wallet, or None."""
        wallet_address = wallet_address.lower()
        if self.backend == "memory":
            data = self._sessions.get(wallet_address)
            return Session(**data) if data else None

        try:
            value = await self.redis_client.get(f"session:wallet:{wallet_address}")
        except Exception as e:
            raise SessionStoreError(f"Failed to load session: {e}")
        return Session(**json.loads(value)) if value else None

    async def get_session_by_id(self, session_id: str) -> Optional[Session]:
        if self.backend == "memory":
            wallet = self._session_index.get(session_id)
        else:
            try:
                wallet = await self.redis_client.get(f"session:id:{session_id}")
            except Exception as e:
                raise SessionStoreError(f"Failed to resolve session {session_id}: {e}")
        if not wallet:
            return None
        session = await self.get_session(wallet)
        return session if session and session.id == session_id else None

    async def create_session(self, wallet_address: str, session_data: Optional[Dict[str, Any]] = None) -> Session:
        """Create a session and make it the wallet's active one."""
        session = Session(wallet_address=wallet_address.lower(), session_data=session_data or {})
        await self._save_session(session)
        logger.info("Created session", session_id=session.id, wallet_address=session.wallet_address)
        return session

    async def get_or_create_session(self, wallet_address: str) -> Session:
        session = await self.get_session(wallet_address)
        if session is None:
            session = await self.create_session(wallet_address, {
                "walletAddress": wallet_address,
                "connectedAt": datetime.now().isoformat(),
            })
        return session

    async def save_bank_accounts(self, wallet_address: str, accounts: List[BankAccount]) -> Session:
        """Upsert the linked-account list into the session blob."""
        session = await self.get_or_create_session(wallet_address)
        session.session_data["bank_accounts"] = [account.model_dump(mode="json") for account in accounts]
        session.updated_at = datetime.now()
        await self._save_session(session)
        return session

    async def _save_session(self, session: Session) -> None:
        data = session.model_dump(mode="json")

        if self.backend == "memory":
            self._sessions[session.wallet_address] = data
            self._session_index[session.id] = session.wallet_address
            return

        try:
            pipe = self.redis_client.pipeline()
            pipe.setex(f"session:wallet:{session.wallet_address}", SESSION_TTL_SECONDS, json.dumps(data))
            pipe.setex(f"session:id:{session.id}", SESSION_TTL_SECONDS, session.wallet_address)
            await pipe.execute()
        except Exception as e:
            raise SessionStoreError(f"Failed to save session: {e}")

    # Messages

    async def store_chat_message(self, session_id: str, message: ChatMessage) -> Dict[str, Any]:
        """Append one message record to the session's history."""
        record = {
            "id": message.id,
            "session_id": session_id,
            "message_type": message.role.value,
            "content": message.content,
            "metadata": {"actions": [a.model_dump(mode="json") for a in message.actions]} if message.actions else {},
            "created_at": message.timestamp.isoformat(),
        }

        if self.backend == "memory":
            self._messages.setdefault(session_id, []).append(record)
            return record

        try:
            key = f"chat:{session_id}:messages"
            pipe = self.redis_client.pipeline()
            pipe.rpush(key, json.dumps(record))
            pipe.expire(key, SESSION_TTL_SECONDS)
            await pipe.execute()
        except Exception as e:
            raise SessionStoreError(f"Failed to store chat message: {e}")
        return record

    async def get_chat_history(self, session_id: str, limit: int = CHAT_HISTORY_LIMIT) -> List[ChatMessage]:
        """Most recent `limit` messages, oldest first."""
        if self.backend == "memory":
            records = self._messages.get(session_id, [])[-limit:]
        else:
            try:
                raw = await self.redis_client.lrange(f"chat:{session_id}:messages", -limit, -1)
            except Exception as e:
                raise SessionStoreError(f"Failed to load chat history: {e}")
            records = [json.loads(item) for item in raw]

        records = sorted(records, key=lambda r: r["created_at"])
        return [
            ChatMessage(
                id=record["id"],
                role=record["message_type"],
                content=record["content"],
                timestamp=record["created_at"],
                actions=(record.get("metadata") or {}).get("actions") or None,
            )
            for record in records
        ]

    async def check_health(self) -> bool:
        """True if the backend is reachable (memory is always healthy)."""
        if self.backend == "memory":
            return True
        try:
            await self.redis_client.ping()
            session_store_healthy.set(1)
            return True
        except Exception:
            session_store_healthy.set(0)
            return False
