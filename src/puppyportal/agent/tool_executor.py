"""Dispatches tool calls registered in ``puppyportal.tools`` and wraps errors into results."""

import logging

from pydantic import ValidationError

from puppyportal.core.schema import (
    ToolCall,
    ToolResult,
)
from puppyportal.store.base import StoreError
from puppyportal.tools import (
    TOOL_REGISTRY,
    ToolContext,
)

logger = logging.getLogger(__name__)


class ToolExecutionError(RuntimeError):
    """Raised when a requested tool cannot run or fails."""


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def run_tool(call: ToolCall, ctx: ToolContext) -> dict:
    """
    Look up *call.name* in the registry, validate its arguments and invoke it.

    Returns
    -------
    dict
        The tool's success payload.

    Raises
    ------
    ToolExecutionError
        If the tool is missing, its arguments are invalid or its invocation raises.
    """
    entry = TOOL_REGISTRY.get(call.name)
    if entry is None:
        raise ToolExecutionError(f"Unknown tool: {call.name or '<missing name>'}")

    try:
        args = entry["args_model"].model_validate(call.arguments)
    except ValidationError as exc:
        raise ToolExecutionError(
            f"Invalid arguments for tool '{call.name}': {_describe_validation_error(exc)}"
        ) from exc

    try:
        logger.debug("Executing tool '%s' with args=%s", call.name, args.model_dump())
        return entry["fn"](args, ctx)
    except StoreError as exc:
        logger.warning("Store error in tool '%s': %s", call.name, exc)
        raise ToolExecutionError(str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error in tool '%s'", call.name)
        raise ToolExecutionError(f"Tool '{call.name}' raised an error: {exc}") from exc


def execute_tool(call: ToolCall, ctx: ToolContext) -> ToolResult:
    """
    Execute one tool call and always answer it with a ToolResult.

    Failures of any kind become a result with ``ok=False`` and a short error string; nothing
    propagates, so the remaining calls of the round still run.
    """
    try:
        payload = run_tool(call, ctx)
    except ToolExecutionError as exc:
        logger.info("Tool '%s' failed: %s", call.name, exc)
        return ToolResult(name=call.name, tool_call_id=call.id, ok=False, error=str(exc))

    return ToolResult(name=call.name, tool_call_id=call.id, ok=True, payload=payload or {})
