"""Session and chat persistence"""

from .session_store import SessionStore

__all__ = ["SessionStore"]
