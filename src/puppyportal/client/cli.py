"""Terminal chat client for the portal's AI assistant."""

from __future__ import annotations

import logging
from typing import (
    Any,
    Dict,
    List,
    Tuple,
    cast,
)

import httpx

from puppyportal.common import (
    AnsiColors,
    colored_print,
)
from puppyportal.config import settings

logger = logging.getLogger(__name__)

GREETING = "Hi! I can help with applications, payments, and puppy info. How can I help today?"
FAILURE_REPLY = "Sorry, something went wrong. Please try again."


# ---------------------------------------------------------------------------
# CLI Client
# ---------------------------------------------------------------------------
def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


def ask_agent(
    messages: List[Dict[str, str]],
    token: str | None,
    base_url: str | None = None,
    http_client: httpx.Client | None = None,
) -> str:
    """Send the whole conversation to ``/api/agent`` and return the reply, or a friendly failure."""
    url = f"{base_url or f'http://localhost:{settings.API_PORT}'}/api/agent"
    headers = {"authorization": f"Bearer {token}"} if token else {}
    client = http_client or httpx.Client(timeout=settings.LLM_TIMEOUT * 2)

    try:
        response = client.post(url, json={"messages": messages}, headers=headers)
        response.raise_for_status()
        data = cast(Dict[str, Any], response.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Agent request error: %s", str(e))
        return FAILURE_REPLY
    finally:
        if http_client is None:
            client.close()

    reply = data.get("reply") if isinstance(data, dict) else None
    return reply if isinstance(reply, str) and reply else FAILURE_REPLY


def run_cli(token: str | None = None, base_url: str | None = None) -> None:
    """Run the chat loop; history is kept here and resent every turn."""
    token = token or settings.PORTAL_ACCESS_TOKEN
    if not token:
        colored_print("PORTAL_ACCESS_TOKEN is not set; requests will be rejected.", AnsiColors.RED)

    messages: List[Dict[str, str]] = [{"role": "assistant", "content": GREETING}]
    colored_print("\nSWVA Chihuahua assistant - type 'exit' to quit", AnsiColors.GREEN)
    colored_print(GREETING, AnsiColors.YELLOW)

    while True:
        colored_print("\nYou: ", AnsiColors.BLUE, end="")
        user_msg, ok = get_user_message()
        if not ok:
            break  # Exit if user input couldn't be retrieved (e.g., Ctrl+C)
        if user_msg.lower() in {"exit", "quit"}:
            break
        if not user_msg:
            continue

        messages.append({"role": "user", "content": user_msg})
        reply = ask_agent(messages, token, base_url=base_url)
        messages.append({"role": "assistant", "content": reply})
        colored_print(reply, AnsiColors.YELLOW)


if __name__ == "__main__":
    run_cli()
