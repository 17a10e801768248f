from .base import LLMProvider
from .channel import AssistantChannel, ChannelHandle, FragmentStream
from .factory import create_llm_provider
from .models import ChatMessage, StreamingResponse, TokenUsage
from .providers import GeminiProvider, OpenAIProvider

__all__ = [
    "AssistantChannel",
    "ChannelHandle",
    "ChatMessage",
    "FragmentStream",
    "GeminiProvider",
    "LLMProvider",
    "OpenAIProvider",
    "StreamingResponse",
    "TokenUsage",
    "create_llm_provider",
]
