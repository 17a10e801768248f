"""Unit tests for the llm module and the assistant channel."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from logomuse.errors import ChannelError
from logomuse.llm import (
    AssistantChannel,
    ChatMessage,
    GeminiProvider,
    LLMProvider,
    OpenAIProvider,
    StreamingResponse,
    TokenUsage,
    create_llm_provider,
)


async def _chunks(*items):
    for item in items:
        yield item


class TestStreamingResponse:
    """Tests for the StreamingResponse wrapper."""

    @pytest.mark.asyncio
    async def test_iterates_chunks_in_order(self):
        stream = StreamingResponse(_chunks("a", "b", "c"))
        assert [chunk async for chunk in stream] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_usage_item_is_captured_not_yielded(self):
        """Test that a TokenUsage item becomes .usage instead of a chunk."""
        usage = TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        stream = StreamingResponse(_chunks("a", usage, "b"))
        assert stream.usage is None

        assert [chunk async for chunk in stream] == ["a", "b"]
        assert stream.usage == usage

    @pytest.mark.asyncio
    async def test_usage_absent(self):
        stream = StreamingResponse(_chunks("a"))
        assert [chunk async for chunk in stream] == ["a"]
        assert stream.usage is None


class TestChatMessage:
    """Tests for ChatMessage model."""

    def test_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            ChatMessage(role="model", content="x")

    def test_is_frozen(self):
        message = ChatMessage(role="user", content="x")
        with pytest.raises(ValueError):
            message.content = "y"


class TestAssistantChannel:
    """Tests for opening channels and streaming replies."""

    def test_open_maps_history_roles(self, channel):
        """Test that store roles are converted to provider roles."""
        handle = channel.open("Be helpful.", [("model", "welcome"), ("user", "hi")])

        assert handle.instruction == "Be helpful."
        assert [(m.role, m.content) for m in handle.history] == [
            ("assistant", "welcome"),
            ("user", "hi"),
        ]

    def test_open_without_history(self, channel):
        handle = channel.open("Be helpful.")
        assert handle.history == []

    def test_open_requires_instruction(self, channel):
        with pytest.raises(ChannelError):
            channel.open("  ")

    def test_open_rejects_unknown_role(self, channel):
        with pytest.raises(ChannelError, match="Unknown history role"):
            channel.open("Be helpful.", [("system", "x")])

    def test_handles_are_independent(self, channel):
        first = channel.open("A")
        second = channel.open("A")
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_stream_sends_instruction_history_and_text(self, channel, provider):
        """Test the request built for a send."""
        handle = channel.open("Be helpful.", [("user", "earlier"), ("model", "reply")])

        fragments = [f async for f in channel.stream_send(handle, "now")]

        assert fragments == ["Hello", " there"]
        [request] = provider.requests
        assert [(m.role, m.content) for m in request] == [
            ("system", "Be helpful."),
            ("user", "earlier"),
            ("assistant", "reply"),
            ("user", "now"),
        ]

    @pytest.mark.asyncio
    async def test_stream_is_lazy(self, channel, provider):
        """Test that no request is made until the stream is iterated."""
        stream = channel.stream_send(channel.open("A"), "hi")
        assert provider.requests == []
        assert not stream.done
        async for _ in stream:
            pass
        assert len(provider.requests) == 1

    @pytest.mark.asyncio
    async def test_completion_extends_history(self, channel, provider):
        """Test that a finished reply is appended to the handle's history."""
        provider.fragments = ["Try ", "warm colors", "."]
        handle = channel.open("A")
        stream = channel.stream_send(handle, "logo for a bakery")

        async for _ in stream:
            pass

        assert stream.done
        assert stream.text == "Try warm colors."
        assert stream.usage.completion_tokens == 3
        assert [(m.role, m.content) for m in handle.history] == [
            ("user", "logo for a bakery"),
            ("assistant", "Try warm colors."),
        ]

    @pytest.mark.asyncio
    async def test_stream_not_restartable(self, channel):
        stream = channel.stream_send(channel.open("A"), "hi")
        first = [f async for f in stream]
        second = [f async for f in stream]
        assert first and second == []

    @pytest.mark.asyncio
    async def test_failure_wrapped_and_history_untouched(self, channel, provider):
        """Test that provider errors become ChannelError and history is unchanged."""
        provider.fail_after = 1
        handle = channel.open("A")
        received = []

        with pytest.raises(ChannelError, match="stream interrupted"):
            async for fragment in channel.stream_send(handle, "hi"):
                received.append(fragment)

        assert received == ["Hello"]
        assert handle.history == []

    @pytest.mark.asyncio
    async def test_start_failure_wrapped(self, channel, provider):
        provider.fail_on_start = True
        with pytest.raises(ChannelError, match="Could not start"):
            async for _ in channel.stream_send(channel.open("A"), "hi"):
                pass

    def test_temperature_and_max_tokens_forwarded(self, provider):
        channel = AssistantChannel(provider, temperature=0.2, max_tokens=64)
        stream = channel.stream_send(channel.open("A"), "hi")
        assert stream._request_kwargs == {"temperature": 0.2, "max_tokens": 64}


class TestGeminiProvider:
    """Tests for the Gemini provider."""

    def test_convert_messages(self):
        provider = GeminiProvider(api_key="test-key")
        system, contents = provider._convert_messages([
            ChatMessage(role="system", content="Be creative."),
            ChatMessage(role="assistant", content="Welcome!"),
            ChatMessage(role="user", content="bakery"),
        ])

        assert system == "Be creative."
        assert [c.role for c in contents] == ["model", "user"]
        assert [c.parts[0].text for c in contents] == ["Welcome!", "bakery"]

    @pytest.mark.asyncio
    async def test_stream_yields_text_and_final_usage(self):
        """Test that chunk text is streamed and the last usage_metadata is kept."""
        def chunk(text, total=None):
            part = SimpleNamespace(text=text)
            metadata = None
            if total is not None:
                metadata = SimpleNamespace(
                    prompt_token_count=4, candidates_token_count=total - 4, total_token_count=total
                )
            return SimpleNamespace(
                candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
                usage_metadata=metadata,
            )

        provider = GeminiProvider(api_key="test-key")
        provider._client = MagicMock()
        provider._client.aio.models.generate_content_stream = AsyncMock(
            return_value=_chunks(chunk("Try "), chunk("teal", total=6), chunk(".", total=9))
        )

        stream = await provider.chat_completion_stream([ChatMessage(role="user", content="hi")])

        assert [c async for c in stream] == ["Try ", "teal", "."]
        assert stream.usage == TokenUsage(prompt_tokens=4, completion_tokens=5, total_tokens=9)
        config = provider._client.aio.models.generate_content_stream.await_args.kwargs["config"]
        assert config.temperature == 0.7


class TestOpenAIProvider:
    """Tests for OpenAI streaming."""

    @pytest.mark.asyncio
    async def test_stream_yields_deltas_and_usage(self):
        """Test that deltas are streamed and the trailing usage chunk is captured."""
        def delta(content):
            return SimpleNamespace(
                choices=[SimpleNamespace(delta=SimpleNamespace(content=content))], usage=None
            )

        usage_chunk = SimpleNamespace(
            choices=[],
            usage=SimpleNamespace(prompt_tokens=8, completion_tokens=2, total_tokens=10),
        )
        provider = OpenAIProvider(api_key="k")
        provider._client = MagicMock()
        provider._client.chat.completions.create = AsyncMock(
            return_value=_chunks(delta("Bold "), delta(None), delta("serif"), usage_chunk)
        )

        stream = await provider.chat_completion_stream(
            [ChatMessage(role="system", content="S"), ChatMessage(role="user", content="hi")],
            max_tokens=32,
        )

        assert [c async for c in stream] == ["Bold ", "serif"]
        assert stream.usage.total_tokens == 10
        params = provider._client.chat.completions.create.await_args.kwargs
        assert params["messages"] == [
            {"role": "system", "content": "S"},
            {"role": "user", "content": "hi"},
        ]
        assert params["max_tokens"] == 32
        assert params["stream"] is True


class TestLLMFactory:
    """Tests for create_llm_provider."""

    def test_provider_is_abstract(self):
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore

    def test_create_gemini(self):
        provider = create_llm_provider("Gemini", api_key="k", model="gemini-2.5-pro")
        assert isinstance(provider, GeminiProvider)
        assert provider.model == "gemini-2.5-pro"

    def test_create_openai(self):
        provider = create_llm_provider("openai", api_key="k")
        assert isinstance(provider, OpenAIProvider)

    def test_missing_api_key(self):
        with pytest.raises(TypeError):
            create_llm_provider("gemini")

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm_provider("llama")
