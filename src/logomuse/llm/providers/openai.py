from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, StreamingResponse, TokenUsage


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions provider.

    Hidden design decisions:
    - AsyncOpenAI client setup (key, base URL, organization)
    - Usage reporting through ``stream_options.include_usage``
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
            "stream": True,
            "stream_options": {"include_usage": True},
            **kwargs,
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        return StreamingResponse(self._deltas(params))

    async def _deltas(self, params: dict[str, Any]) -> AsyncIterator[str | TokenUsage]:
        stream = await self._client.chat.completions.create(**params)
        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content
            # With include_usage the last chunk has no choices, only usage
            if chunk.usage is not None:
                yield TokenUsage(
                    prompt_tokens=chunk.usage.prompt_tokens,
                    completion_tokens=chunk.usage.completion_tokens,
                    total_tokens=chunk.usage.total_tokens,
                )

    async def close(self) -> None:
        await self._client.close()
