"""Encode provider stream chunks as a UI message stream.

The widget reads server-sent events, one JSON object per ``data:`` line,
ending with ``data: [DONE]``. Text and reasoning deltas are grouped into
blocks (``*-start`` / ``*-delta`` / ``*-end``); a block is closed before a
block of the other kind opens so the client sees chunks in the order the
provider produced them.
"""

import asyncio
import json
import time
import uuid
from typing import Any, AsyncIterator, Dict, Iterator, Optional

import structlog

from chat_proxy.providers.base import (
    FinishChunk,
    ReasoningDelta,
    SourceCitation,
    StreamChunk,
    TextDelta,
)

logger = structlog.get_logger()

DONE = "data: [DONE]\n\n"
UI_MESSAGE_STREAM_HEADERS = {
    "x-vercel-ai-ui-message-stream": "v1",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}
TIMEOUT_ERROR_TEXT = "Stream timeout exceeded"

_FINISH_REASONS = {
    "stop": "stop",
    "length": "length",
    "content_filter": "content-filter",
    "tool_calls": "tool-calls",
    "function_call": "tool-calls",
    "error": "error",
}


def sse_format(data: Dict[str, Any]) -> str:
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"


def map_finish_reason(reason: Optional[str]) -> str:
    if reason is None:
        return "unknown"
    return _FINISH_REASONS.get(reason, "other")


class _Blocks:
    """Tracks the currently open text or reasoning block."""

    def __init__(self) -> None:
        self.kind: Optional[str] = None
        self.id: Optional[str] = None
        self._count = 0

    def delta(self, kind: str, delta: str) -> Iterator[Dict[str, Any]]:
        if self.kind != kind:
            yield from self.close()
            self.kind, self.id = kind, str(self._count)
            self._count += 1
            yield {"type": f"{kind}-start", "id": self.id}
        yield {"type": f"{kind}-delta", "id": self.id, "delta": delta}

    def close(self) -> Iterator[Dict[str, Any]]:
        if self.kind is not None:
            yield {"type": f"{self.kind}-end", "id": self.id}
        self.kind = self.id = None


async def ui_message_stream(
    chunks: AsyncIterator[StreamChunk],
    *,
    send_reasoning: bool = True,
    send_sources: bool = True,
    timeout_seconds: Optional[float] = None,
    message_id: Optional[str] = None,
) -> AsyncIterator[str]:
    """Forward ``chunks`` as UI message stream events, in arrival order.

    The whole stream is bounded by ``timeout_seconds``; on expiry, or when
    the provider raises, an ``error`` event is written and the stream ends.
    Nothing is retried.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_seconds if timeout_seconds is not None else None
    start = time.time()
    blocks = _Blocks()
    counts = {"text": 0, "reasoning": 0, "source": 0}
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    iterator = aiter(chunks)

    yield sse_format({"type": "start", "messageId": message_id or uuid.uuid4().hex})
    yield sse_format({"type": "start-step"})
    try:
        while True:
            try:
                async with asyncio.timeout_at(deadline):
                    chunk = await anext(iterator)
            except StopAsyncIteration:
                break

            if isinstance(chunk, TextDelta):
                counts["text"] += 1
                for event in blocks.delta("text", chunk.delta):
                    yield sse_format(event)
            elif isinstance(chunk, ReasoningDelta):
                if not send_reasoning:
                    continue
                counts["reasoning"] += 1
                for event in blocks.delta("reasoning", chunk.delta):
                    yield sse_format(event)
            elif isinstance(chunk, SourceCitation):
                if not send_sources:
                    continue
                counts["source"] += 1
                event = {
                    "type": "source-url",
                    "sourceId": chunk.source_id,
                    "url": chunk.url,
                }
                if chunk.title:
                    event["title"] = chunk.title
                yield sse_format(event)
            elif isinstance(chunk, FinishChunk):
                finish_reason = chunk.finish_reason
                usage = chunk.usage
    except TimeoutError:
        logger.error("chat_stream_timeout", timeout_seconds=timeout_seconds)
        for event in blocks.close():
            yield sse_format(event)
        yield sse_format({"type": "error", "errorText": TIMEOUT_ERROR_TEXT})
        yield DONE
        return
    except Exception as e:
        logger.error("chat_stream_error", error=str(e), error_type=type(e).__name__)
        for event in blocks.close():
            yield sse_format(event)
        yield sse_format({"type": "error", "errorText": str(e) or type(e).__name__})
        yield DONE
        return
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()

    for event in blocks.close():
        yield sse_format(event)
    yield sse_format({"type": "finish-step"})
    yield sse_format({"type": "finish", "finishReason": map_finish_reason(finish_reason)})
    yield DONE
    logger.info(
        "chat_stream_finished",
        elapsed_ms=int((time.time() - start) * 1000),
        finish_reason=finish_reason,
        usage=usage,
        **counts,
    )
