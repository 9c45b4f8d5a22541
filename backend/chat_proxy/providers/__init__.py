from chat_proxy.providers.base import (
    ChatMessage,
    FinishChunk,
    Provider,
    ProviderConfig,
    ReasoningDelta,
    SourceCitation,
    StreamChunk,
    TextDelta,
)
from chat_proxy.providers.openai_compatible import OpenAICompatibleProvider

__all__ = [
    "ChatMessage",
    "FinishChunk",
    "OpenAICompatibleProvider",
    "Provider",
    "ProviderConfig",
    "ReasoningDelta",
    "SourceCitation",
    "StreamChunk",
    "TextDelta",
]
