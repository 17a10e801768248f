"""In-memory chat session state."""

from dataclasses import dataclass, field

from ..conversations.models import Conversation, Message
from ..errors import LogomuseError
from ..llm.channel import ChannelHandle
from ..personas.models import Persona


@dataclass
class SessionState:
    """Process-local state of one chat session. Never persisted.

    Attributes:
        active_persona: Persona whose instruction the channel was built with
        active_conversation_id: Conversation the timeline belongs to
        timeline: Messages shown to the user, oldest first; while streaming
            the last element is the reply placeholder
        channel: Live channel handle, None until a conversation is active
        is_streaming: True while a send is in flight
        conversations: Last fetched conversation list, newest first
        error: Most recent user-visible error, cleared by the next action
    """

    active_persona: Persona
    active_conversation_id: str | None = None
    timeline: list[Message] = field(default_factory=list)
    channel: ChannelHandle | None = None
    is_streaming: bool = False
    conversations: list[Conversation] = field(default_factory=list)
    error: LogomuseError | None = None

    @property
    def last_error(self) -> str | None:
        """Human-readable text of the most recent error."""
        return self.error.message if self.error else None

    @property
    def can_send(self) -> bool:
        return self.channel is not None and self.active_conversation_id is not None and not self.is_streaming

    @property
    def can_switch(self) -> bool:
        """Persona and conversation switches are locked while a reply streams."""
        return not self.is_streaming
