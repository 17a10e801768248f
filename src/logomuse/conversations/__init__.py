"""Conversation persistence module for logomuse.

Stores brainstorming conversations and their ordered messages.
"""

from .base import ConversationNotFoundError, ConversationStore
from .factory import create_conversation_store
from .models import Conversation, Message, MessageRole

__all__ = [
    "Conversation",
    "ConversationNotFoundError",
    "ConversationStore",
    "Message",
    "MessageRole",
    "create_conversation_store",
]
