"""Persona-scoped, persisted chat session manager.

The manager is the single coordinator of persona switches, conversation
switches and streamed sends. It keeps the in-memory timeline and the
conversation store consistent and rebuilds the model channel whenever
the persona or conversation changes, so the channel always pairs the
active persona's instruction with the active conversation's stored
history.

Errors never propagate out of the public operations. Each failure is
logged, recorded on ``state.error`` and reported to listeners, and the
operation returns False. The session stays in its last consistent state
and the user may retry.
"""

import logging
from collections.abc import Callable

from ..conversations.base import ConversationStore
from ..conversations.models import Conversation, Message, MessageRole, utcnow
from ..errors import (
    ChannelError,
    ConversationLoadError,
    InitializationError,
    LogomuseError,
    SendError,
    StoreError,
    ValidationError,
)
from ..llm.channel import AssistantChannel
from ..personas.catalog import PersonaCatalog
from ..personas.models import Persona
from .state import SessionState

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_TITLE = "New Conversation"

StateListener = Callable[[SessionState], None]


class ChatSessionManager:
    """Coordinates one chat session over an injected store and channel.

    All operations run on a single event loop. At most one send may be
    in flight; while it is, persona and conversation switches are
    refused.

    Usage:
        manager = ChatSessionManager(store, AssistantChannel(provider), PersonaCatalog())
        manager.add_listener(render)
        await manager.initialize()
        await manager.send("logo for a bakery")
    """

    def __init__(
        self,
        store: ConversationStore,
        channel: AssistantChannel,
        catalog: PersonaCatalog,
        persona: Persona = Persona.CREATIVE
    ):
        persona = Persona(persona)
        if not catalog.is_available(persona):
            raise ValueError(f"Persona '{persona.value}' is not enabled")

        self._store = store
        self._channel = channel
        self._catalog = catalog
        self._listeners: list[StateListener] = []
        self.state = SessionState(active_persona=persona)

    @property
    def catalog(self) -> PersonaCatalog:
        return self._catalog

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with the state after every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def _fail(self, error: LogomuseError, cause: Exception | None = None) -> bool:
        if cause is not None:
            logger.warning("%s (caused by %s: %s)", error.message, type(cause).__name__, cause)
        else:
            logger.warning("%s", error.message)
        self.state.error = error
        self._notify()
        return False

    def _begin(self) -> None:
        self.state.error = None

    def _refuse_while_streaming(self, action: str) -> bool:
        if not self.state.can_switch:
            self._fail(ValidationError(f"Cannot {action} while a reply is being generated"))
            return True
        return False

    async def initialize(self) -> bool:
        """Load the most recent conversation, or start one if none exist."""
        self._begin()
        try:
            conversations = await self._store.list_conversations()
        except StoreError as e:
            return self._fail(InitializationError(f"Could not load conversations: {e.message}"), e)

        self.state.conversations = conversations
        if conversations:
            logger.info("Resuming conversation %s", conversations[0].id)
            ok = await self.select_conversation(conversations[0].id)
        else:
            logger.info("No conversations found; starting a new one")
            ok = await self.start_new_conversation(DEFAULT_CONVERSATION_TITLE)

        if not ok:
            reason = self.state.last_error or "unknown error"
            return self._fail(InitializationError(f"Could not start chat session: {reason}"))
        return True

    async def select_persona(self, persona: Persona) -> bool:
        """Switch persona; always begins a fresh conversation."""
        persona = Persona(persona)
        if persona == self.state.active_persona:
            return True
        if self._refuse_while_streaming("switch persona"):
            return False

        self._begin()
        if not self._catalog.is_available(persona):
            return self._fail(ValidationError(f"Persona '{persona.value}' is not available"))

        previous = self.state.active_persona
        self.state.active_persona = persona
        if not await self.start_new_conversation(DEFAULT_CONVERSATION_TITLE):
            # The channel still belongs to the previous persona
            self.state.active_persona = previous
            self._notify()
            return False

        logger.info("Switched persona from %s to %s", previous.value, persona.value)
        return True

    async def start_new_conversation(self, title: str = DEFAULT_CONVERSATION_TITLE) -> bool:
        """Create a conversation seeded with the active persona's welcome text.

        A conversation whose seed message cannot be stored is deleted
        again. The list refresh afterwards is best effort: a failure is
        recorded but the new conversation stays active.
        """
        if self._refuse_while_streaming("start a new conversation"):
            return False

        self._begin()
        persona = self.state.active_persona
        try:
            handle = self._channel.open(self._catalog.instruction_for(persona))
            conversation_id = await self._store.create_conversation(title)
        except (StoreError, ChannelError) as e:
            return self._fail(e)

        try:
            seed = await self._store.append_message(
                conversation_id, MessageRole.MODEL, self._catalog.welcome_for(persona)
            )
        except StoreError as e:
            await self._discard(conversation_id)
            return self._fail(e)

        self.state.channel = handle
        self.state.active_conversation_id = conversation_id
        self.state.timeline = [seed]
        logger.info("Started conversation %s with persona %s", conversation_id, persona.value)

        if not await self.refresh_conversations():
            self.state.conversations.insert(
                0, Conversation(id=conversation_id, title=title, created_at=seed.timestamp)
            )
        self._notify()
        return True

    async def _discard(self, conversation_id: str) -> None:
        try:
            await self._store.delete_conversation(conversation_id)
        except StoreError as e:
            logger.warning("Could not remove unseeded conversation %s: %s", conversation_id, e.message)

    async def select_conversation(self, conversation_id: str) -> bool:
        """Load a conversation and rebuild the channel from its history."""
        if self._refuse_while_streaming("switch conversation"):
            return False

        self._begin()
        try:
            messages = await self._store.list_messages(conversation_id)
        except StoreError as e:
            return self._fail(
                ConversationLoadError(f"Could not load conversation: {e.message}"), e
            )

        try:
            handle = self._channel.open(
                self._catalog.instruction_for(self.state.active_persona),
                [m.as_history_entry() for m in messages],
            )
        except ChannelError as e:
            return self._fail(
                ConversationLoadError(f"Could not resume conversation: {e.message}"), e
            )

        self.state.timeline = messages
        self.state.channel = handle
        self.state.active_conversation_id = conversation_id
        logger.debug("Loaded conversation %s (%d messages)", conversation_id, len(messages))
        self._notify()
        return True

    async def send(self, text: str) -> bool:
        """Send user text and stream the reply into the timeline.

        No-op (returns False) for blank text, when no channel is live or
        while another send is in flight.
        """
        if not text or not text.strip():
            return False
        if not self.state.can_send:
            return False

        self._begin()
        conversation_id = self.state.active_conversation_id
        handle = self.state.channel
        timeline = self.state.timeline
        self.state.is_streaming = True
        try:
            user_message = Message(role=MessageRole.USER, text=text, timestamp=utcnow())
            timeline.append(user_message)
            self._notify()
            try:
                await self._store.append_message(conversation_id, MessageRole.USER, text)
            except StoreError as e:
                timeline.remove(user_message)
                return self._fail(SendError(f"Could not save your message: {e.message}"), e)

            timeline.append(Message(role=MessageRole.MODEL, text="", timestamp=utcnow()))
            self._notify()

            stream = self._channel.stream_send(handle, text)
            try:
                async for fragment in stream:
                    # The placeholder has no id yet; it is always the last element
                    timeline[-1].text += fragment
                    self._notify()
            except ChannelError as e:
                timeline.pop()
                return self._fail(SendError(f"Assistant error: {e.message}"), e)
            if stream.usage is not None:
                logger.info(
                    "Reply in %s used %d tokens (%d prompt, %d completion)",
                    conversation_id, stream.usage.total_tokens,
                    stream.usage.prompt_tokens, stream.usage.completion_tokens
                )

            try:
                stored = await self._store.append_message(
                    conversation_id, MessageRole.MODEL, timeline[-1].text
                )
            except StoreError as e:
                return self._fail(SendError(f"Could not save the assistant reply: {e.message}"), e)

            timeline[-1] = stored
            return True
        finally:
            self.state.is_streaming = False
            self._notify()

    async def rename_conversation(self, conversation_id: str, title: str) -> bool:
        """Rename a conversation; blank titles are ignored."""
        if not title or not title.strip():
            return False

        self._begin()
        try:
            await self._store.rename_conversation(conversation_id, title.strip())
        except StoreError as e:
            return self._fail(e)
        return await self.refresh_conversations()

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation, falling back to another if it was active."""
        was_active = conversation_id == self.state.active_conversation_id
        if was_active and self._refuse_while_streaming("delete the active conversation"):
            return False

        self._begin()
        try:
            await self._store.delete_conversation(conversation_id)
        except StoreError as e:
            return self._fail(e)
        logger.info("Deleted conversation %s", conversation_id)
        self.state.conversations = [c for c in self.state.conversations if c.id != conversation_id]

        refreshed = await self.refresh_conversations()
        if not was_active:
            return refreshed

        # The deleted conversation must not stay active even if the list is stale
        self.state.active_conversation_id = None
        self.state.channel = None
        self.state.timeline = []
        if refreshed and self.state.conversations:
            if await self.select_conversation(self.state.conversations[0].id):
                return True
        return await self.start_new_conversation(DEFAULT_CONVERSATION_TITLE)

    async def refresh_conversations(self) -> bool:
        """Re-fetch the conversation list, newest first."""
        try:
            self.state.conversations = await self._store.list_conversations()
        except StoreError as e:
            return self._fail(e)
        self._notify()
        return True
