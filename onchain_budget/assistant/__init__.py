"""AI assistant: LLM client, prompts, suggested actions and the chat bridge"""

from .llm_client import LLMClient, calculate_cost
from .actions import suggest_actions, welcome_actions
from .prompts import SYSTEM_PROMPT, build_context, build_prompt, build_insights_prompt
from .bridge import AssistantBridge

__all__ = [
    "LLMClient",
    "calculate_cost",
    "suggest_actions",
    "welcome_actions",
    "SYSTEM_PROMPT",
    "build_context",
    "build_prompt",
    "build_insights_prompt",
    "AssistantBridge"
]
