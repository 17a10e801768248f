"""
Logomuse: a logo-creation assistant with a persona-driven brainstorming chat.

Each module hides one design decision: where conversations are stored,
which model provider answers, and how personas are configured.
"""

__version__ = "0.1.0"

from .conversations import (
    Conversation,
    ConversationStore,
    Message,
    MessageRole,
    create_conversation_store,
)
from .errors import (
    ChannelError,
    ConversationLoadError,
    InitializationError,
    LogomuseError,
    SendError,
    StoreError,
    ValidationError,
)
from .llm import AssistantChannel, create_llm_provider
from .personas import Persona, PersonaCatalog, PersonaConfig, fetch_persona_config
from .session import ChatSessionManager, SessionState

__all__ = [
    "AssistantChannel",
    "ChannelError",
    "ChatSessionManager",
    "Conversation",
    "ConversationLoadError",
    "ConversationStore",
    "InitializationError",
    "LogomuseError",
    "Message",
    "MessageRole",
    "Persona",
    "PersonaCatalog",
    "PersonaConfig",
    "SendError",
    "SessionState",
    "StoreError",
    "ValidationError",
    "create_conversation_store",
    "create_llm_provider",
    "fetch_persona_config",
]
