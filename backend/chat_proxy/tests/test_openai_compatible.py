import json

import httpx
import openai
import pytest

from chat_proxy.providers import (
    ChatMessage,
    FinishChunk,
    OpenAICompatibleProvider,
    ProviderConfig,
    ReasoningDelta,
    SourceCitation,
    TextDelta,
)
from chat_proxy.tests.conftest import parse_events


def _chunk(delta=None, finish_reason=None, usage=None):
    body = {
        "id": "gen-1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "test/model",
        "choices": [],
    }
    if delta is not None or finish_reason is not None:
        body["choices"] = [
            {"index": 0, "delta": delta or {}, "finish_reason": finish_reason}
        ]
    if usage is not None:
        body["usage"] = usage
    return f"data: {json.dumps(body)}\n\n"


CITATION = {
    "type": "url_citation",
    "url_citation": {"url": "https://a.example", "title": "A"},
}

SSE_BODY = "".join(
    [
        _chunk({"role": "assistant", "content": "", "reasoning": "hmm"}),
        _chunk({"content": "Hi"}),
        _chunk({"content": "", "annotations": [CITATION, CITATION]}),
        _chunk({}, finish_reason="stop"),
        _chunk(usage={"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}),
        "data: [DONE]\n\n",
    ]
)


class RecordingTransport:
    """httpx handler that serves a canned response and keeps the requests."""

    def __init__(self, status_code=200, body=SSE_BODY):
        self.status_code = status_code
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(
                self.status_code,
                json={"error": {"message": "No auth credentials found", "code": self.status_code}},
            )
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=self.body.encode(),
        )


@pytest.fixture
def config():
    return ProviderConfig(
        name="openrouter",
        base_url="https://openrouter.test/api/v1",
        api_key="test-key",
        model="test/model",
        system_prompt="Be helpful.",
    )


def _provider(config, transport):
    return OpenAICompatibleProvider(
        config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(transport))
    )


@pytest.mark.asyncio
async def test_stream_maps_deltas_to_typed_chunks(config):
    transport = RecordingTransport()
    provider = _provider(config, transport)

    chunks = [
        c async for c in provider.stream_chat([ChatMessage(role="user", content="hello")])
    ]

    assert [type(c) for c in chunks] == [
        ReasoningDelta,
        TextDelta,
        SourceCitation,
        FinishChunk,
    ]
    assert chunks[0].delta == "hmm"
    assert chunks[1].delta == "Hi"
    assert chunks[2].url == "https://a.example"
    assert chunks[2].title == "A"
    assert chunks[3].finish_reason == "stop"
    assert chunks[3].usage["total_tokens"] == 5


@pytest.mark.asyncio
async def test_outbound_payload(config):
    transport = RecordingTransport()
    provider = _provider(config, transport)
    messages = [
        ChatMessage(role="user", content="hello"),
        ChatMessage(role="assistant", content="hi there"),
        ChatMessage(role="user", content="bye"),
    ]

    async for _ in provider.stream_chat(messages):
        pass

    (request,) = transport.requests
    assert request.url.path == "/api/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer test-key"
    payload = json.loads(request.content)
    assert payload["model"] == "test/model"
    assert payload["stream"] is True
    assert payload["messages"] == [
        {"role": "system", "content": "Be helpful."},
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "hi there"},
        {"role": "user", "content": "bye"},
    ]


@pytest.mark.asyncio
async def test_auth_failure_is_raised_without_retry(config):
    transport = RecordingTransport(status_code=401)
    provider = _provider(config, transport)

    with pytest.raises(openai.AuthenticationError):
        async for _ in provider.stream_chat([ChatMessage(role="user", content="hello")]):
            pass

    assert len(transport.requests) == 1


def test_endpoint_round_trip_through_provider(config, make_client, user_message):
    transport = RecordingTransport()
    client = make_client(_provider(config, transport))

    response = client.post("/api/chat", json={"messages": [user_message]})

    (request,) = transport.requests
    sent = json.loads(request.content)["messages"]
    assert {"role": "user", "content": "hello"} in sent
    events = parse_events(response.text)
    types = [e if e == "[DONE]" else e["type"] for e in events]
    assert types.index("reasoning-delta") < types.index("text-delta") < types.index("source-url")
    assert types[-1] == "[DONE]"


def test_endpoint_reports_provider_auth_error(config, make_client, user_message):
    client = make_client(_provider(config, RecordingTransport(status_code=401)))

    response = client.post("/api/chat", json={"messages": [user_message]})

    events = parse_events(response.text)
    assert events[-2]["type"] == "error"
    assert events[-1] == "[DONE]"
