import time
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Set

import httpx
import structlog
from openai import AsyncOpenAI

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

logger = structlog.get_logger()


def _field(obj: Any, name: str) -> Any:
    # Provider-specific delta fields arrive as untyped extras (plain dicts).
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class OpenAICompatibleProvider(Provider):
    """Streams chat completions from any OpenAI-compatible endpoint.

    Besides plain content deltas this understands the reasoning and
    ``url_citation`` annotation extensions that OpenRouter adds to
    ``choices[].delta``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.http_client = http_client
        self.client: Optional[AsyncOpenAI] = None

    def _build_client(self) -> AsyncOpenAI:
        # Built on first use: a missing key fails the request, not startup
        if self.client is None:
            self.client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                max_retries=0,
                http_client=self.http_client,
            )
        return self.client

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()

    def _to_openai_messages(
        self, messages: List[ChatMessage], system: Optional[str]
    ) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        if system:
            out.append({"role": "system", "content": system})
        # Pass through roles/content
        out.extend({"role": m.role, "content": m.content} for m in messages)
        return out

    def _sources(self, delta: Any, seen: Set[str]) -> List[SourceCitation]:
        sources = []
        for annotation in _field(delta, "annotations") or []:
            if _field(annotation, "type") != "url_citation":
                continue
            citation = _field(annotation, "url_citation") or annotation
            url = _field(citation, "url")
            if not url or url in seen:
                continue
            seen.add(url)
            sources.append(
                SourceCitation(
                    source_id=uuid.uuid4().hex,
                    url=url,
                    title=_field(citation, "title"),
                )
            )
        return sources

    async def stream_chat(
        self,
        messages: List[ChatMessage],
        *,
        model: Optional[str] = None,
        system: Optional[str] = None,
    ) -> AsyncIterator[StreamChunk]:
        model = model or self.config.model
        if system is None:
            system = self.config.system_prompt
        start = time.perf_counter()
        client = self._build_client()
        stream = await client.chat.completions.create(
            model=model,
            messages=self._to_openai_messages(messages, system),
            stream=True,
        )
        logger.debug(
            "provider_stream_opened",
            provider=self.config.name,
            model=model,
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        )
        finish_reason: Optional[str] = None
        usage: Optional[Dict[str, Any]] = None
        seen_urls: Set[str] = set()
        try:
            async for event in stream:
                # event is a ChatCompletionChunk
                if event.usage is not None:
                    usage = event.usage.model_dump(exclude_none=True)
                if not event.choices:
                    continue
                choice = event.choices[0]
                delta = getattr(choice, "delta", None)
                reasoning = _field(delta, "reasoning") or _field(
                    delta, "reasoning_content"
                )
                if reasoning:
                    yield ReasoningDelta(delta=reasoning)
                if delta is not None and delta.content:
                    yield TextDelta(delta=delta.content)
                for source in self._sources(delta, seen_urls):
                    yield source
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        finally:
            await stream.close()
        yield FinishChunk(finish_reason=finish_reason, usage=usage)
