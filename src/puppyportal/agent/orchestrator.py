"""Two-round tool-calling protocol behind the portal's AI assistant."""

import logging
from enum import Enum
from typing import (
    List,
    Optional,
    Sequence,
)

from puppyportal.agent.completion_client import CompletionClient
from puppyportal.agent.tool_executor import execute_tool
from puppyportal.config import Settings
from puppyportal.core.schema import (
    Caller,
    ChatMessage,
    ToolResult,
)
from puppyportal.store.base import DataStore
from puppyportal.tools import (
    ToolContext,
    get_tool_specs,
)

logger = logging.getLogger(__name__)

# Tools are offered in round 1 only; round 2 answers from their results.
MAX_TOOL_ROUNDS = 1

FALLBACK_REPLY = "Done."

SYSTEM_PROMPT = """\
You are the AI assistant for Southwest Virginia Chihuahua (SWVA Chihuahua).
Priorities: be courteous, clear, and accurate. Respect privacy. Never expose admin tools or change data.
If asked to create invoices, edit contracts, or access admin dashboards, decline and offer to message the breeder instead.

Capabilities via tools:
- list_available_puppies: read-only listing with DOB, gender, price, coat, registry, status.
- get_my_application_status: read-only status of the signed-in buyer's application(s).
- send_message_to_breeder: insert a message from this user to the breeder.
- create_payment_link: return the portal payments URL only (no direct charges).

When listings are shown, summarize in plain language and include key fields."""


class UnauthorizedError(RuntimeError):
    """Raised when no caller identity is available."""


class ProtocolState(str, Enum):
    """Where a single request is in the exchange."""

    AWAITING_FIRST_COMPLETION = "awaiting_first_completion"
    AWAITING_SECOND_COMPLETION = "awaiting_second_completion"
    DONE = "done"


class AgentOrchestrator:
    """
    Turns one inbound conversation into one reply on behalf of one caller.

    The orchestrator holds no per-request state; the completion client is injected and the data
    store is handed in per call, already bound to the caller.
    """

    def __init__(self, completion_client: CompletionClient, settings: Settings):
        self._llm = completion_client
        self._settings = settings

    def handle(
        self,
        conversation: Sequence[ChatMessage],
        caller: Optional[Caller],
        store: DataStore,
    ) -> str:
        """
        Run both completion rounds and return the assistant's final, non-empty text.

        Raises
        ------
        UnauthorizedError
            If *caller* is missing; nothing else happens in that case.
        CompletionServiceError
            If either completion round fails.
        """
        if caller is None:
            raise UnauthorizedError("Unauthorized")

        state = ProtocolState.AWAITING_FIRST_COMPLETION
        tools = get_tool_specs()
        outbound: List[ChatMessage] = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
        outbound.extend(conversation)

        # Round 1: the model may propose tool calls
        first = self._llm.complete(outbound, tools, tool_choice="auto")
        state = ProtocolState.AWAITING_SECOND_COMPLETION

        results: List[ToolResult] = []
        if first.tool_calls:
            logger.info(
                "Model proposed %d tool calls: %s",
                len(first.tool_calls),
                [call.name for call in first.tool_calls],
            )
            ctx = ToolContext(caller=caller, store=store, settings=self._settings)
            for call in first.tool_calls:
                results.append(execute_tool(call, ctx))

        followup: List[ChatMessage] = list(outbound)
        if results:
            followup.append(first.to_message())
            followup.extend(result.to_message() for result in results)

        # Round 2: tools withheld, answer from the results
        final = self._llm.complete(followup, tools, tool_choice="none")
        if final.tool_calls:
            logger.warning(
                "Ignoring %d tool calls requested after tool round %d",
                len(final.tool_calls),
                MAX_TOOL_ROUNDS,
            )
        state = ProtocolState.DONE
        logger.debug("Agent exchange finished in state %s", state.value)

        reply = (final.content or "").strip()
        return reply or FALLBACK_REPLY
