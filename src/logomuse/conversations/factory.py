"""Factory for creating conversation store backends."""

from typing import Any

from .base import ConversationStore


def create_conversation_store(
    backend: str = "memory",
    **kwargs: Any
) -> ConversationStore:
    """Create a conversation store backend.

    Backends are imported lazily so that optional client libraries are
    only needed when selected.

    Args:
        backend: Backend type ("memory", "sqlite" or "firestore")
        **kwargs: Backend-specific configuration
            For sqlite:
                - path: str | Path (default: './logomuse_conversations.db')
            For firestore:
                - project: str | None
                - collection: str (default: 'conversations')

    Returns:
        ConversationStore instance

    Raises:
        ValueError: If backend type is not supported

    Example:
        >>> store = create_conversation_store("sqlite", path="chats.db")
        >>> await store.connect()
    """
    backend_lower = backend.lower()

    if backend_lower == "memory":
        from .in_memory import InMemoryConversationStore
        return InMemoryConversationStore(**kwargs)

    elif backend_lower == "sqlite":
        from .sqlite import SQLiteConversationStore
        return SQLiteConversationStore(**kwargs)

    elif backend_lower == "firestore":
        from .firestore import FirestoreConversationStore
        return FirestoreConversationStore(**kwargs)

    raise ValueError(
        f"Unsupported conversation store backend: {backend}. "
        f"Supported backends: memory, sqlite, firestore"
    )
