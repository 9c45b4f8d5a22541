"""Convert chat-widget messages into provider chat messages.

This is a format conversion only: roles map one-to-one, order is kept and
nothing is summarised or filtered out of the conversation.
"""

from typing import Any, Dict, List, Union

from chat_proxy.providers.base import ChatMessage
from chat_proxy.schemas import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE, UIMessage


def _text_of(part: Dict[str, Any]) -> str:
    text = part.get("text")
    return text if isinstance(text, str) else ""


def _user_content(parts: List[Dict[str, Any]]) -> Union[str, List[Dict[str, Any]]]:
    content: List[Dict[str, Any]] = []
    for part in parts:
        kind = part.get("type")
        if kind == "text":
            content.append({"type": "text", "text": _text_of(part)})
        elif kind == "file" and str(part.get("mediaType", "")).startswith("image/"):
            content.append({"type": "image_url", "image_url": {"url": part.get("url")}})
        elif kind == "file":
            # Non-image attachments are forwarded by reference
            name = part.get("filename") or part.get("url")
            content.append({"type": "text", "text": f"[attachment: {name}]"})
    if all(c["type"] == "text" for c in content):
        return "".join(c["text"] for c in content)
    return content


def _joined_text(parts: List[Dict[str, Any]]) -> str:
    return "".join(_text_of(p) for p in parts if p.get("type") == "text")


def convert_message(message: UIMessage) -> ChatMessage:
    if not message.parts:
        return ChatMessage(role=message.role, content=message.content or "")

    if message.role == USER_ROLE:
        content = _user_content(message.parts)
    elif message.role in (SYSTEM_ROLE, ASSISTANT_ROLE):
        # reasoning, source and step-start parts stay on the client
        content = _joined_text(message.parts)
    else:
        content = _joined_text(message.parts) or (message.content or "")
    return ChatMessage(role=message.role, content=content)


def convert_to_provider_messages(messages: List[UIMessage]) -> List[ChatMessage]:
    return [convert_message(m) for m in messages]
