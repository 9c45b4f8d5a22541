from typing import Any, AsyncIterator, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class ProviderConfig(BaseModel):
    """Connection settings for one OpenAI-compatible provider."""

    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str
    api_key: str
    model: str
    system_prompt: Optional[str] = None


class ChatMessage(BaseModel):
    role: str  # "system" | "user" | "assistant"
    content: Union[str, List[Dict[str, Any]]]


# Stream chunks, in the order the provider emits them.
class TextDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    delta: str


class ReasoningDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["reasoning"] = "reasoning"
    delta: str


class SourceCitation(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["source"] = "source"
    source_id: str
    url: str
    title: Optional[str] = None


class FinishChunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["finish"] = "finish"
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None


StreamChunk = Union[TextDelta, ReasoningDelta, SourceCitation, FinishChunk]


class Provider:
    async def aclose(self) -> None:
        return None

    def stream_chat(
        self,
        messages: List[ChatMessage],
        *,
        model: Optional[str] = None,
        system: Optional[str] = None,
    ) -> AsyncIterator[StreamChunk]:
        """Open one streaming completion and yield its chunks lazily.

        The returned iterator is single-use; closing it tears down the
        outbound request.
        """
        raise NotImplementedError
