"""In-memory conversation store backend.

Simple dict-based storage for session-only conversations.
Data is lost when the application exits.
"""

from itertools import count
from uuid import uuid4

from .base import ConversationNotFoundError, ConversationStore
from .models import Conversation, Message, MessageRole, utcnow


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store (session-only).

    Suitable for single-session use or testing. Ties between equal
    timestamps are broken by insertion order.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[Message]] = {}
        self._sequence = count()
        self._created_order: dict[str, int] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    def _require(self, conversation_id: str) -> Conversation:
        try:
            return self._conversations[conversation_id]
        except KeyError:
            raise ConversationNotFoundError(conversation_id) from None

    async def create_conversation(self, title: str) -> str:
        conversation_id = uuid4().hex
        self._conversations[conversation_id] = Conversation(id=conversation_id, title=title)
        self._messages[conversation_id] = []
        self._created_order[conversation_id] = next(self._sequence)
        return conversation_id

    async def list_conversations(self) -> list[Conversation]:
        return sorted(
            self._conversations.values(),
            key=lambda c: (c.created_at, self._created_order[c.id]),
            reverse=True,
        )

    async def list_messages(self, conversation_id: str) -> list[Message]:
        self._require(conversation_id)
        # Copies, so callers mutating their timeline never touch stored data
        return [m.model_copy() for m in self._messages[conversation_id]]

    async def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        text: str
    ) -> Message:
        self._require(conversation_id)
        message = Message(role=role, text=text, timestamp=utcnow())
        self._messages[conversation_id].append(message)
        return message.model_copy()

    async def rename_conversation(self, conversation_id: str, title: str) -> None:
        conversation = self._require(conversation_id)
        self._conversations[conversation_id] = conversation.model_copy(update={"title": title})

    async def delete_conversation(self, conversation_id: str) -> None:
        self._conversations.pop(conversation_id, None)
        self._messages.pop(conversation_id, None)
        self._created_order.pop(conversation_id, None)

    @property
    def backend_type(self) -> str:
        return "memory"
