"""Chat session module for logomuse.

Coordinates personas, conversations and streamed replies.
"""

from .manager import DEFAULT_CONVERSATION_TITLE, ChatSessionManager, StateListener
from .state import SessionState

__all__ = [
    "DEFAULT_CONVERSATION_TITLE",
    "ChatSessionManager",
    "SessionState",
    "StateListener",
]
