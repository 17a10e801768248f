"""Pytest configuration and shared fixtures."""
from collections.abc import AsyncIterator
from typing import Any

import pytest

from logomuse.conversations.in_memory import InMemoryConversationStore
from logomuse.errors import StoreError
from logomuse.llm import AssistantChannel, ChatMessage, LLMProvider, StreamingResponse, TokenUsage
from logomuse.personas import PersonaCatalog, PersonaConfig


class FakeProvider(LLMProvider):
    """Provider returning scripted fragments and recording every request."""

    def __init__(self, fragments: list[str] | None = None):
        self.fragments = fragments if fragments is not None else ["Hello", " there"]
        self.fail_after: int | None = None
        self.fail_on_start = False
        self.requests: list[list[ChatMessage]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return "fake-model"

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        self.requests.append(list(messages))
        if self.fail_on_start:
            raise RuntimeError("model unavailable")
        return StreamingResponse(self._generate())

    async def _generate(self) -> AsyncIterator[str | TokenUsage]:
        for i, fragment in enumerate(self.fragments):
            if self.fail_after is not None and i >= self.fail_after:
                raise RuntimeError("stream interrupted")
            yield fragment
        yield TokenUsage(prompt_tokens=12, completion_tokens=len(self.fragments), total_tokens=12 + len(self.fragments))

    async def close(self) -> None:
        self.closed = True


class FlakyStore(InMemoryConversationStore):
    """In-memory store whose operations can be made to fail on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()
        self.appended: list[tuple[str, str, str]] = []

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise StoreError(f"{operation} unavailable")

    async def create_conversation(self, title: str) -> str:
        self._check("create_conversation")
        return await super().create_conversation(title)

    async def list_conversations(self):
        self._check("list_conversations")
        return await super().list_conversations()

    async def list_messages(self, conversation_id: str):
        self._check("list_messages")
        return await super().list_messages(conversation_id)

    async def append_message(self, conversation_id, role, text):
        self._check("append_message")
        self.appended.append((conversation_id, role.value, text))
        return await super().append_message(conversation_id, role, text)

    async def rename_conversation(self, conversation_id: str, title: str) -> None:
        self._check("rename_conversation")
        await super().rename_conversation(conversation_id, title)

    async def delete_conversation(self, conversation_id: str) -> None:
        self._check("delete_conversation")
        await super().delete_conversation(conversation_id)


@pytest.fixture
def provider():
    """Scripted LLM provider."""
    return FakeProvider()


@pytest.fixture
def channel(provider):
    """Assistant channel over the scripted provider."""
    return AssistantChannel(provider)


@pytest.fixture
def store():
    """In-memory store with failure injection."""
    return FlakyStore()


@pytest.fixture
def catalog():
    """Persona catalog with the competitor persona enabled."""
    return PersonaCatalog(PersonaConfig(enable_competitor=True))
