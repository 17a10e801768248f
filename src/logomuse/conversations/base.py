"""Abstract base class for conversation store backends.

This module defines the interface for conversation persistence.
The abstraction hides:
- Storage format (document collections, SQL tables, dicts)
- Persistence mechanism (hosted database, local file, in-memory)
- Connection management
- Identifier and timestamp assignment
"""

from abc import ABC, abstractmethod
from typing import Any

from ..errors import StoreError
from .models import Conversation, Message, MessageRole


class ConversationNotFoundError(StoreError):
    """Raised when an operation targets a conversation that does not exist."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class ConversationStore(ABC):
    """Abstract conversation store.

    Provides a unified interface for creating, listing, reading and
    mutating conversations across different storage backends.

    Supports async context manager protocol:
        async with store:
            conversation_id = await store.create_conversation("New Conversation")
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store backend gracefully."""

    @abstractmethod
    async def create_conversation(self, title: str) -> str:
        """Create a conversation and return its identifier."""

    @abstractmethod
    async def list_conversations(self) -> list[Conversation]:
        """List all conversations, newest first."""

    @abstractmethod
    async def list_messages(self, conversation_id: str) -> list[Message]:
        """List the messages of a conversation, oldest first.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """

    @abstractmethod
    async def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        text: str
    ) -> Message:
        """Append a message; the store assigns its timestamp.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """

    @abstractmethod
    async def rename_conversation(self, conversation_id: str, title: str) -> None:
        """Change a conversation's title.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """

    @abstractmethod
    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation together with all of its messages."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "ConversationStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
