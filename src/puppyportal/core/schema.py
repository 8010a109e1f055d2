"""
Schema definitions for caller <-> orchestrator <-> model <-> tool messages.

These data models serve as the contract between the HTTP surface, the two-round orchestration
protocol, the completion service and individual tools.  We keep them separate from runtime logic so
they can be imported anywhere without side-effects.
"""

import json
import logging
from typing import (
    Any,
    Dict,
    List,
    Literal,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant", "tool"]


class ChatMessage(BaseModel):
    """One role-tagged message of a conversation."""

    role: Role
    content: str
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Raw tool calls requested by an assistant message"
    )

    def to_wire(self) -> Dict[str, Any]:
        """Render the message in the chat-completions request shape."""
        return self.model_dump(exclude_none=True)


class ToolCall(BaseModel):
    """A call that the model wants the orchestrator to execute."""

    id: Optional[str] = None
    name: str = Field(..., description="Registered tool name")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Untrusted argument bag")

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["ToolCall"]:
        """
        Parse one entry of a response's ``tool_calls`` array.

        Returns *None* for entries that are not objects; those carry no id and cannot be answered.
        A missing function name yields an empty name, which the executor reports as unknown.
        """
        if not isinstance(raw, dict):
            logger.warning("Dropping malformed tool call entry: %r", raw)
            return None

        function = raw.get("function")
        if not isinstance(function, dict):
            function = {}
        name = function.get("name")
        call_id = raw.get("id")

        return cls(
            id=call_id if isinstance(call_id, str) else None,
            name=name.strip() if isinstance(name, str) else "",
            arguments=_parse_arguments(function.get("arguments")),
        )


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    """Arguments come as a JSON string (or already decoded); anything unusable becomes ``{}``."""
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(str(raw or "{}"))
    except json.JSONDecodeError:
        logger.warning("Tool call arguments are not valid JSON: %r", raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


class ToolResult(BaseModel):
    """Outcome of executing exactly one ToolCall."""

    name: str
    tool_call_id: Optional[str] = None
    ok: bool
    payload: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    def envelope(self) -> Dict[str, Any]:
        """Success/failure envelope handed to the model."""
        if self.ok:
            return {"ok": True, **self.payload}
        return {"ok": False, "error": self.error or "Tool failed"}

    def to_message(self) -> ChatMessage:
        """Tool-role message answering the originating call."""
        return ChatMessage(
            role="tool",
            name=self.name,
            tool_call_id=self.tool_call_id,
            content=json.dumps(self.envelope(), default=str),
        )


class AssistantTurn(BaseModel):
    """What one completion round returned."""

    content: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)
    raw_tool_calls: List[Dict[str, Any]] = Field(default_factory=list)

    def to_message(self) -> ChatMessage:
        """Assistant message to replay before the tool results of the next round."""
        return ChatMessage(
            role="assistant",
            content=self.content or "",
            tool_calls=self.raw_tool_calls or None,
        )


class Caller(BaseModel):
    """The authenticated end-user on whose behalf tools run."""

    id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
