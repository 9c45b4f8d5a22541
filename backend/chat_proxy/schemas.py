from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"


class UIMessage(BaseModel):
    """A message as the chat widget holds it: a role plus typed parts.

    Extra keys are preserved and part contents are not validated.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    role: str
    parts: List[Dict[str, Any]] = Field(default_factory=list)
    # Older widgets send a flat string instead of parts
    content: Optional[str] = None


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: List[UIMessage]
