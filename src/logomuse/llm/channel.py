"""Assistant channel: a logical conversation with a text model.

A channel is bound to one instruction and one history snapshot. The
provider itself is stateless; the handle carries the turns that are
replayed with every request.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from ..errors import ChannelError
from .base import LLMProvider
from .models import ChatMessage, StreamingResponse, TokenUsage

logger = logging.getLogger(__name__)

# Store roles use 'model' for assistant turns, providers use 'assistant'
_ROLE_MAP = {
    "user": "user",
    "model": "assistant",
    "assistant": "assistant",
}


@dataclass
class ChannelHandle:
    """A live channel: instruction plus the turns exchanged so far."""

    instruction: str
    history: list[ChatMessage] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid4().hex)

    def to_messages(self, text: str | None = None) -> list[ChatMessage]:
        """Build the provider request: system instruction, history, new user turn."""
        messages = [ChatMessage(role="system", content=self.instruction), *self.history]
        if text is not None:
            messages.append(ChatMessage(role="user", content=text))
        return messages


class FragmentStream:
    """Async iterator over the fragments of one model reply.

    The provider request is issued lazily on first iteration. Fragments
    are yielded in arrival order. Provider failures surface as
    ``ChannelError``. When the reply completes, the user turn and the
    full reply are appended to the handle's history. A stream can be
    consumed only once.
    """

    def __init__(
        self,
        provider: LLMProvider,
        handle: ChannelHandle,
        text: str,
        request_kwargs: dict[str, Any]
    ):
        self._provider = provider
        self._handle = handle
        self._text = text
        self._request_kwargs = request_kwargs
        self._response: StreamingResponse | None = None
        self._fragments: list[str] = []
        self._started = False
        self._done = False

    @property
    def text(self) -> str:
        """The reply accumulated so far."""
        return "".join(self._fragments)

    @property
    def done(self) -> bool:
        return self._done

    @property
    def usage(self) -> TokenUsage | None:
        """Token usage reported by the provider, once the reply is complete."""
        return self._response.usage if self._response else None

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> str:
        if self._done:
            raise StopAsyncIteration

        if not self._started:
            self._started = True
            try:
                self._response = await self._provider.chat_completion_stream(
                    self._handle.to_messages(self._text),
                    **self._request_kwargs
                )
            except Exception as e:
                self._done = True
                raise ChannelError(f"Could not start model stream: {e}") from e

        try:
            fragment = await self._response.__anext__()
        except StopAsyncIteration:
            self._finish()
            raise
        except Exception as e:
            self._done = True
            raise ChannelError(f"Model stream failed: {e}") from e

        self._fragments.append(fragment)
        return fragment

    def _finish(self) -> None:
        self._done = True
        self._handle.history.append(ChatMessage(role="user", content=self._text))
        self._handle.history.append(ChatMessage(role="assistant", content=self.text))
        logger.debug(
            "Channel %s reply complete (%d fragments, %d chars, usage=%s)",
            self._handle.id, len(self._fragments), len(self.text), self.usage
        )


class AssistantChannel:
    """Opens channels and streams replies through an LLM provider.

    Usage:
        channel = AssistantChannel(provider)
        handle = channel.open("You are a branding expert.", history=[("user", "hi")])
        async for fragment in channel.stream_send(handle, "logo for a bakery"):
            print(fragment, end="")
    """

    def __init__(
        self,
        provider: LLMProvider,
        temperature: float = 0.7,
        max_tokens: int | None = None
    ):
        self._provider = provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    def open(
        self,
        instruction: str,
        history: Iterable[tuple[str, str]] | None = None
    ) -> ChannelHandle:
        """Open a channel seeded with an instruction and prior turns.

        Args:
            instruction: System instruction for the model
            history: Ordered (role, text) pairs; roles are 'user' or 'model'

        Returns:
            A new ChannelHandle

        Raises:
            ChannelError: If the instruction is empty or a role is unknown
        """
        if not instruction or not instruction.strip():
            raise ChannelError("Cannot open a channel without an instruction")

        turns = []
        for role, text in history or ():
            mapped = _ROLE_MAP.get(role)
            if mapped is None:
                raise ChannelError(f"Unknown history role: {role!r}")
            turns.append(ChatMessage(role=mapped, content=text))

        handle = ChannelHandle(instruction=instruction, history=turns)
        logger.debug("Opened channel %s with %d history turns", handle.id, len(turns))
        return handle

    def stream_send(self, handle: ChannelHandle, text: str) -> FragmentStream:
        """Send a user message and return the stream of reply fragments."""
        request_kwargs: dict[str, Any] = {"temperature": self._temperature}
        if self._max_tokens is not None:
            request_kwargs["max_tokens"] = self._max_tokens
        return FragmentStream(self._provider, handle, text, request_kwargs)
