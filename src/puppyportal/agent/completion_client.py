"""
Completion service interface for the portal agent.

This module is the only place that *directly* calls a language model.  It speaks the
OpenAI chat-completions wire format over plain HTTP so any compatible endpoint can be configured
through ``LLM_API_URL``.
"""

import logging
from typing import (
    Any,
    Dict,
    List,
    Literal,
    Sequence,
)

import httpx

from puppyportal.config import Settings
from puppyportal.core.schema import (
    AssistantTurn,
    ChatMessage,
    ToolCall,
)

logger = logging.getLogger(__name__)

ToolChoice = Literal["auto", "none"]

FALLBACK_CONTENT = "I'm here to help."


class CompletionServiceError(RuntimeError):
    """Raised when the completion service fails or answers with a non-2xx status."""


class CompletionClient:
    """Stateless request/response client for a chat-completions endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self._settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=settings.LLM_TIMEOUT)

    def _headers(self) -> Dict[str, str]:
        headers = {"content-type": "application/json"}
        if self._settings.LLM_API_KEY:
            headers["authorization"] = f"Bearer {self._settings.LLM_API_KEY}"
        return headers

    def complete(
        self,
        messages: Sequence[ChatMessage],
        tools: List[Dict[str, Any]],
        tool_choice: ToolChoice,
    ) -> AssistantTurn:
        """
        Run one completion round.

        Parameters
        ----------
        messages:
            The full outbound conversation, system prompt first.
        tools:
            Function specs advertised to the model.
        tool_choice:
            ``"auto"`` lets the model request tools, ``"none"`` forbids it.

        Raises
        ------
        CompletionServiceError
            On transport failure, timeout, a non-2xx status or a body that is not JSON.
        """
        payload = {
            "model": self._settings.LLM_MODEL,
            "messages": [m.to_wire() for m in messages],
            "tools": tools,
            "tool_choice": "none" if tool_choice == "none" else "auto",
            "temperature": self._settings.LLM_TEMPERATURE,
        }

        try:
            resp = self._client.post(
                self._settings.LLM_API_URL,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.LLM_TIMEOUT,
            )
        except httpx.HTTPError as exc:
            logger.error("Completion request error: %s", exc)
            raise CompletionServiceError(f"LLM request failed: {exc}") from exc

        if not resp.is_success:
            logger.error("Completion service returned HTTP %d", resp.status_code)
            raise CompletionServiceError(f"LLM HTTP {resp.status_code}: {resp.text}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise CompletionServiceError("LLM returned a non-JSON body") from exc

        logger.debug("Completion response: %s", data)
        return parse_completion(data)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def parse_completion(data: Any) -> AssistantTurn:
    """Extract ``choices[0].message`` and its tool calls, tolerating missing pieces."""
    message = None
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")

    if not isinstance(message, dict):
        logger.warning("Completion response carried no message")
        return AssistantTurn(content=FALLBACK_CONTENT)

    content = message.get("content")
    raw_calls = message.get("tool_calls")
    if not isinstance(raw_calls, list):
        raw_calls = []

    # Entries without a string id get a synthetic one, used both in the replayed assistant message
    # and as the tool_call_id of the result, so every replayed call is answered.
    replay: List[Dict[str, Any]] = []
    calls: List[ToolCall] = []
    for index, raw in enumerate(raw_calls):
        if isinstance(raw, dict) and not (isinstance(raw.get("id"), str) and raw["id"]):
            raw = {**raw, "id": f"call_{index}"}
        call = ToolCall.from_raw(raw)
        if call is None:
            continue
        replay.append(raw)
        calls.append(call)

    return AssistantTurn(
        content=content if isinstance(content, str) else None,
        tool_calls=calls,
        raw_tool_calls=replay,
    )
