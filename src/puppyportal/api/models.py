"""
Pydantic models for portal API requests and responses.
This module defines the request and response schemas used by the portal API.
"""

import logging
from typing import (
    Any,
    List,
)

from pydantic import (
    BaseModel,
    TypeAdapter,
    ValidationError,
)

from puppyportal.core.schema import (
    ChatMessage,
    Role,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class InboundMessage(BaseModel):
    """One message as the chat page sends it."""

    role: Role
    content: str
    name: str | None = None

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content, name=self.name)


_MESSAGES = TypeAdapter(List[InboundMessage])


def normalize_conversation(body: Any) -> List[ChatMessage]:
    """
    Turn an arbitrary request body into a conversation.

    Anything other than ``{"messages": [{role, content}, ...]}`` is an empty conversation, never
    an error.
    """
    if not isinstance(body, dict):
        return []
    raw = body.get("messages")
    if not isinstance(raw, list):
        return []
    try:
        messages = _MESSAGES.validate_python(raw)
    except ValidationError as exc:
        logger.info("Ignoring malformed conversation: %d errors", exc.error_count())
        return []
    return [m.to_chat_message() for m in messages]


class AgentResponse(BaseModel):
    """API response returned to the caller."""

    reply: str


class ErrorResponse(BaseModel):
    """Error body for every non-2xx response."""

    error: str
