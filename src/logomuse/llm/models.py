from collections.abc import AsyncIterator
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TokenUsage(BaseModel):
    """Token counts reported by a provider for one reply."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class StreamingResponse:
    """Async iterator over the text chunks of one streamed reply.

    Providers feed it a generator that yields text chunks and, usually as
    its last item, a ``TokenUsage``. The usage item is captured rather
    than yielded, so consumers only ever see text.

    Usage:
        stream = await provider.chat_completion_stream(messages)
        async for chunk in stream:
            print(chunk, end="")
        print(stream.usage)  # TokenUsage(prompt_tokens=100, ...) or None
    """

    def __init__(self, items: AsyncIterator[str | TokenUsage]):
        self._items = items
        self._usage: TokenUsage | None = None

    @property
    def usage(self) -> TokenUsage | None:
        """Token usage, once the provider has reported it."""
        return self._usage

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        while True:
            item = await self._items.__anext__()
            if isinstance(item, TokenUsage):
                self._usage = item
                continue
            return item


class ChatMessage(BaseModel):
    """Represents a chat message sent to a provider."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"] = Field(
        description="Role of the message sender: 'user', 'assistant', or 'system'"
    )
    content: str = Field(description="Content of the message")
