"""Custom exceptions for the budget assistant"""

from typing import Any, Optional


class BudgetAssistantError(Exception):
    """Base exception for budget assistant errors"""
    pass


class ValidationError(BudgetAssistantError):
    """Malformed identifier rejected before any network call"""
    pass


class UpstreamError(BudgetAssistantError):
    """Provider answered with a non-success status"""

    def __init__(self, provider: str, status_code: int, body: Any = None):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider} returned HTTP {status_code}")


class TransportError(BudgetAssistantError):
    """Provider could not be reached (timeout, DNS, connection reset)"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider} unreachable: {message}")


class NormalizationError(BudgetAssistantError):
    """Provider record is missing required fields"""

    def __init__(self, record_type: str, missing: Optional[list] = None):
        self.record_type = record_type
        self.missing = missing or []
        super().__init__(f"Malformed {record_type} record, missing: {self.missing}")


class LLMError(BudgetAssistantError):
    """LLM API errors"""
    pass


class SessionStoreError(BudgetAssistantError):
    """Session/message persistence errors"""
    pass


class ConfigurationError(BudgetAssistantError):
    """Configuration loading errors"""
    pass


class AssistantBusyError(BudgetAssistantError):
    """A chat turn is already awaiting the AI reply"""

    def __init__(self):
        super().__init__("Still thinking about your last message")
