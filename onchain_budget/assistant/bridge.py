"""
Conversational assistant bridge.

One chat turn moves idle -> awaiting_ai_reply -> idle. The user message is
appended locally before anything else happens; persistence of each message
is a separate step whose failure is logged and never undoes the append. The
AI call can fail in any way and the turn still ends with exactly one
assistant message (the fallback text).

Only one turn may be outstanding: a send while awaiting a reply raises
AssistantBusyError instead of queueing.
"""

from typing import List, Optional

from onchain_budget.assistant.actions import suggest_actions, welcome_actions
from onchain_budget.assistant.llm_client import LLMClient
from onchain_budget.assistant.prompts import SYSTEM_PROMPT, build_context, build_insights_prompt, build_prompt
from onchain_budget.constants import (
    CHAT_HISTORY_LIMIT,
    FALLBACK_MESSAGE,
    INSIGHTS_FALLBACK_MESSAGE,
    WELCOME_MESSAGE,
    ChatState,
    MessageRole,
    TransactionType,
)
from onchain_budget.facade import FinancialAggregator
from onchain_budget.models import ChatMessage
from onchain_budget.persistence import SessionStore
from onchain_budget.utils.errors import AssistantBusyError, SessionStoreError, ValidationError
from onchain_budget.utils.logging import get_logger
from onchain_budget.utils.metrics import chat_turns, message_persist_failures

logger = get_logger(__name__)


class AssistantBridge:
    """Chat session for one wallet, backed by the wallet's read model."""

    def __init__(
        self,
        wallet_address: str,
        aggregator: FinancialAggregator,
        llm: LLMClient,
        store: SessionStore,
        history_limit: int = CHAT_HISTORY_LIMIT
    ):
        self.wallet_address = wallet_address
        self.aggregator = aggregator
        self.llm = llm
        self.store = store
        self.history_limit = history_limit

        self.logger = logger.bind(wallet_address=wallet_address)

        self.messages: List[ChatMessage] = []
        self.session_id: Optional[str] = None
        self.state = ChatState.IDLE

    @property
    def is_typing(self) -> bool:
        return self.state == ChatState.AWAITING_AI_REPLY

    async def start_session(self) -> List[ChatMessage]:
        """
        Attach to the wallet's session, creating it if needed.

        An existing session's history is loaded; a session without history
        gets the welcome message.

        Raises:
            SessionStoreError: If the session cannot be read or created
        """
        session = await self.store.get_or_create_session(self.wallet_address)
        self.session_id = session.id

        await self.load_history()
        if not self.messages:
            await self._post_welcome()
        return self.messages

    async def load_history(self) -> List[ChatMessage]:
        """Replace local messages with the stored history (oldest first)."""
        if self.session_id is None:
            return self.messages
        try:
            self.messages = await self.store.get_chat_history(self.session_id, limit=self.history_limit)
        except SessionStoreError as e:
            self.logger.error("Failed to load chat history", session_id=self.session_id, error=str(e))
        return self.messages

    async def clear_chat(self) -> List[ChatMessage]:
        """
        Drop the conversation and start a fresh session.

        Linked bank accounts carry over to the new session.
        """
        if self.state != ChatState.IDLE:
            raise AssistantBusyError()

        session_data = {}
        previous = await self.store.get_session(self.wallet_address)
        if previous is not None:
            session_data = dict(previous.session_data)

        self.messages = []
        self.session_id = None
        session = await self.store.create_session(self.wallet_address, session_data)
        self.session_id = session.id
        self.logger.info("Chat cleared", session_id=session.id)

        await self._post_welcome()
        return self.messages

    async def send_message(self, content: str) -> ChatMessage:
        """
        Run one chat turn.

        Args:
            content: User message text

        Returns:
            The assistant message appended for this turn (reply or fallback)

        Raises:
            ValidationError: If content is empty
            AssistantBusyError: If a previous turn is still awaiting its reply
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")
        if self.state != ChatState.IDLE:
            chat_turns.labels(outcome='rejected').inc()
            raise AssistantBusyError()

        self.state = ChatState.AWAITING_AI_REPLY
        try:
            if self.session_id is None:
                await self.start_session()

            prior = list(self.messages)
            user_message = ChatMessage(role=MessageRole.USER, content=content)
            self.messages.append(user_message)
            await self._persist(user_message)

            try:
                context = build_context(self.aggregator.snapshot(), prior)
                reply = await self.llm.complete(build_prompt(content, context), system_prompt=SYSTEM_PROMPT)
                actions = suggest_actions(content)
                assistant_message = ChatMessage(role=MessageRole.ASSISTANT, content=reply, actions=actions or None)
                outcome = 'reply'
            except Exception as e:
                self.logger.error("AI response failed, sending fallback", error=str(e), error_type=type(e).__name__)
                assistant_message = ChatMessage(role=MessageRole.ASSISTANT, content=FALLBACK_MESSAGE)
                outcome = 'fallback'

            self.messages.append(assistant_message)
            chat_turns.labels(outcome=outcome).inc()
            await self._persist(assistant_message)
            return assistant_message
        finally:
            self.state = ChatState.IDLE

    async def generate_spending_insights(self, account_id: Optional[str] = None) -> str:
        """
        Narrative spending insights over categorized expense totals.

        Uses the given account's last 30 days, or the read model's current
        transactions when no account is given. Failures return a fixed text.
        """
        if account_id:
            categories = await self.aggregator.get_spending_summary(account_id)
            transaction_count = len(self.aggregator.transactions_for(account_id))
        else:
            categories = {}
            expenses = [t for t in self.aggregator.transactions if t.type == TransactionType.EXPENSE]
            for txn in expenses:
                categories[txn.category] = categories.get(txn.category, 0.0) + txn.amount
            transaction_count = len(expenses)

        try:
            return await self.llm.complete(
                build_insights_prompt(categories, transaction_count),
                system_prompt=SYSTEM_PROMPT,
                purpose="insights"
            )
        except Exception as e:
            self.logger.error("Spending insights failed", error=str(e))
            return INSIGHTS_FALLBACK_MESSAGE

    async def _post_welcome(self) -> None:
        welcome = ChatMessage(role=MessageRole.ASSISTANT, content=WELCOME_MESSAGE, actions=welcome_actions())
        self.messages.append(welcome)
        await self._persist(welcome)

    async def _persist(self, message: ChatMessage) -> None:
        if self.session_id is None:
            return
        try:
            await self.store.store_chat_message(self.session_id, message)
        except SessionStoreError as e:
            message_persist_failures.labels(role=message.role.value).inc()
            self.logger.error(
                "Failed to store chat message",
                session_id=self.session_id,
                role=message.role.value,
                error=str(e)
            )
