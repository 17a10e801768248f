"""Google Gemini provider.

Uses the Google GenAI SDK's async streaming API. The leading system
message becomes the request's ``system_instruction``; every other turn
is sent as ``contents``.
Reference: https://github.com/googleapis/python-genai
"""

from collections.abc import AsyncIterator
from typing import Any

from google import genai
from google.genai import types

from ..base import LLMProvider
from ..models import ChatMessage, StreamingResponse, TokenUsage

# Gemini calls the assistant side of a chat 'model'
_GEMINI_ROLES = {"user": "user", "assistant": "model"}


class GeminiProvider(LLMProvider):
    """Google Gemini provider.

    Hidden design decisions:
    - genai.Client construction
    - Role mapping and system instruction placement
    - Reading usage_metadata off the final chunk
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        **client_kwargs: Any
    ):
        self._model = model
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: list[ChatMessage]) -> tuple[str | None, list[types.Content]]:
        """Split messages into (system_instruction, contents)."""
        system_instruction = None
        contents = []
        for msg in messages:
            if msg.role == "system":
                system_instruction = msg.content
                continue
            contents.append(types.Content(
                role=_GEMINI_ROLES[msg.role],
                parts=[types.Part(text=msg.content)]
            ))
        return system_instruction, contents

    @staticmethod
    def _chunk_text(chunk: types.GenerateContentResponse) -> str:
        if not chunk.candidates:
            return ""
        content = chunk.candidates[0].content
        if not content or not content.parts:
            return ""
        return "".join(part.text for part in content.parts if part.text)

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        system_instruction, contents = self._convert_messages(messages)
        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
            max_output_tokens=max_tokens,
            **kwargs
        )
        return StreamingResponse(self._chunks(model or self._model, contents, config))

    async def _chunks(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> AsyncIterator[str | TokenUsage]:
        usage = None
        stream = await self._client.aio.models.generate_content_stream(
            model=model, contents=contents, config=config
        )
        async for chunk in stream:
            text = self._chunk_text(chunk)
            if text:
                yield text
            # Intermediate chunks carry running counts; keep the last
            if chunk.usage_metadata:
                usage = TokenUsage(
                    prompt_tokens=chunk.usage_metadata.prompt_token_count or 0,
                    completion_tokens=chunk.usage_metadata.candidates_token_count or 0,
                    total_tokens=chunk.usage_metadata.total_token_count or 0,
                )
        if usage is not None:
            yield usage

    async def close(self) -> None:
        """No-op: genai.Client holds no connection that needs closing."""
