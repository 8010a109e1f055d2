"""
Tool registry for the portal agent.

This module provides a decorator to register tools and a registry to look them up by name.  Each
tool declares a pydantic model for its arguments; the model both validates/clamps the untrusted
argument bag the language model sends and produces the parameter schema advertised to the model.
"""

import logging
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Type,
    TypedDict,
)

from pydantic import (
    BaseModel,
    ConfigDict,
)

from puppyportal.config import Settings
from puppyportal.core.schema import Caller
from puppyportal.store.base import DataStore

logger = logging.getLogger(__name__)


class ToolContext(BaseModel):
    """Everything a tool may touch: the caller it acts for and the caller-scoped store."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    caller: Caller
    store: DataStore
    settings: Settings


ToolFn = Callable[[Any, ToolContext], Dict[str, Any]]


class RegisteredTool(TypedDict):
    """
    A catalog entry.
    """

    fn: ToolFn
    description: str
    args_model: Type[BaseModel]


TOOL_REGISTRY: Dict[str, RegisteredTool] = {}
"""Global registry of tool functions."""


def register_tool(name: str, description: str, args_model: Type[BaseModel]) -> Callable:
    """
    Register a tool function under *name*.

    The function is registered as a decorator, so it can be used like this:
        @register_tool("my_tool", "What it does.", MyToolArgs)
        def my_tool(args: MyToolArgs, ctx: ToolContext) -> dict:
            return {"results": [...]}

    The function receives the validated argument model and the request's ToolContext and returns
    the success payload.  It signals failure by raising.

    Raises
    ------
    ValueError
        If a function with the same name is already registered.
    """
    if name in TOOL_REGISTRY:
        raise ValueError(f"Tool '{name}' is already registered.")
    logger.debug("Registering tool '%s'", name)

    def wrapper(fn: ToolFn) -> ToolFn:
        TOOL_REGISTRY[name] = RegisteredTool(fn=fn, description=description, args_model=args_model)
        return fn

    return wrapper


def _parameters_schema(args_model: Type[BaseModel]) -> Dict[str, Any]:
    schema = args_model.model_json_schema()
    return {
        "type": "object",
        "properties": schema.get("properties", {}),
        "required": schema.get("required", []),
    }


def get_tool_specs() -> List[Dict[str, Any]]:
    """Render the catalog as chat-completions function specs."""
    return [
        {
            "type": "function",
            "function": {
                "name": name,
                "description": entry["description"],
                "parameters": _parameters_schema(entry["args_model"]),
            },
        }
        for name, entry in TOOL_REGISTRY.items()
    ]


# Populate the catalog
from puppyportal.tools import breeder  # noqa: E402,F401  pylint: disable=wrong-import-position
