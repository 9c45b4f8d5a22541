import json
import uuid

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from chat_proxy.api.deps import ProviderDep, SettingsDep
from chat_proxy.schemas import ChatRequest
from chat_proxy.services.conversion import convert_to_provider_messages
from chat_proxy.services.ui_stream import UI_MESSAGE_STREAM_HEADERS, ui_message_stream

router = APIRouter(tags=["chat"])
logger = structlog.get_logger()


async def _read_payload(request: Request) -> ChatRequest:
    # The body is JSON whatever Content-Type the client declares
    try:
        data = json.loads(await request.body())
    except ValueError:
        logger.warning("invalid_json_body", path=request.url.path)
        raise HTTPException(status_code=400, detail="Request body is not valid JSON")
    try:
        return ChatRequest.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(
            e.errors(include_url=False, include_context=False)
        ) from e


@router.post(
    "/chat",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ChatRequest.model_json_schema()}},
        }
    },
)
async def chat(
    request: Request,
    settings: SettingsDep,
    provider: ProviderDep,
) -> StreamingResponse:
    """Stream a reply to the conversation in the body's ``messages``."""
    payload = await _read_payload(request)
    messages = convert_to_provider_messages(payload.messages)
    logger.info(
        "chat_request",
        message_count=len(messages),
        model=settings.CHAT_MODEL,
    )
    chunks = provider.stream_chat(
        messages,
        model=settings.CHAT_MODEL,
        system=settings.SYSTEM_PROMPT,
    )
    body = ui_message_stream(
        chunks,
        send_reasoning=settings.SEND_REASONING,
        send_sources=settings.SEND_SOURCES,
        timeout_seconds=settings.STREAM_TIMEOUT_SECONDS,
        message_id=uuid.uuid4().hex,
    )
    return StreamingResponse(
        body,
        media_type="text/event-stream",
        headers=UI_MESSAGE_STREAM_HEADERS,
    )
