"""Shared fixtures: test settings, a scripted provider and an app client."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from chat_proxy.core.config import Settings
from chat_proxy.main import create_app
from chat_proxy.providers.base import ChatMessage, Provider, StreamChunk


class FakeProvider(Provider):
    """Replays a fixed list of chunks and records every call."""

    def __init__(
        self,
        chunks: Sequence[StreamChunk] = (),
        error: Optional[Exception] = None,
        delay: Optional[float] = None,
    ) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def stream_chat(self, messages: List[ChatMessage], *, model=None, system=None):
        self.calls.append({"messages": messages, "model": model, "system": system})
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            for chunk in self.chunks:
                yield chunk
            if self.error:
                raise self.error
        finally:
            self.closed = True


def parse_events(body: str) -> List[Any]:
    """Split a UI message stream body into decoded events."""
    events = []
    for frame in body.split("\n\n"):
        if not frame.strip():
            continue
        assert frame.startswith("data: ")
        data = frame[len("data: "):]
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        OPENROUTER_API_KEY="test-key",
        CHAT_MODEL="test/model",
        SYSTEM_PROMPT="Be helpful.",
        STREAM_TIMEOUT_SECONDS=30,
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(settings, provider) -> TestClient:
    return TestClient(create_app(settings, provider=provider))


@pytest.fixture
def user_message() -> Dict[str, Any]:
    return {"id": "m1", "role": "user", "parts": [{"type": "text", "text": "hello"}]}


@pytest.fixture
def make_client(settings):
    """Build a client around a specific provider."""

    def _make(provider: Provider) -> TestClient:
        return TestClient(create_app(settings, provider=provider))

    return _make
