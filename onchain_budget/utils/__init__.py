"""Utility modules"""

from .config_loader import load_config, get_supported_tokens, get_rpc_urls, get_native_symbols, get_assistant_config
from .errors import (
    BudgetAssistantError,
    ValidationError,
    UpstreamError,
    TransportError,
    NormalizationError,
    LLMError,
    SessionStoreError,
    ConfigurationError,
    AssistantBusyError
)
from .validation import is_valid_address, require_address, require_account_id

__all__ = [
    "load_config",
    "get_supported_tokens",
    "get_rpc_urls",
    "get_native_symbols",
    "get_assistant_config",
    "BudgetAssistantError",
    "ValidationError",
    "UpstreamError",
    "TransportError",
    "NormalizationError",
    "LLMError",
    "SessionStoreError",
    "ConfigurationError",
    "AssistantBusyError",
    "is_valid_address",
    "require_address",
    "require_account_id"
]
