"""Data models for persisted conversations.

These models define the structure of conversations and their messages,
independent of the storage backend used.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Author of a message within a conversation."""

    USER = "user"
    MODEL = "model"


class Conversation(BaseModel):
    """A titled, timestamped container for an ordered list of messages."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Store-assigned identifier")
    title: str = Field(description="Display title, may be renamed")
    created_at: datetime = Field(default_factory=utcnow)


class Message(BaseModel):
    """A single turn in a conversation.

    Messages are append-only once written to a store. The in-memory
    placeholder for a reply that is still streaming is the only
    instance whose text changes after creation.
    """

    role: MessageRole = Field(description="Who wrote the message")
    text: str = Field(default="", description="Message body")
    timestamp: datetime = Field(default_factory=utcnow)

    def as_history_entry(self) -> tuple[str, str]:
        """Return the (role, text) pair used to replay history to a model."""
        return self.role.value, self.text
