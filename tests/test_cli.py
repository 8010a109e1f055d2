"""Tests for the terminal chat client."""

import json

import httpx

from puppyportal.client.cli import (
    FAILURE_REPLY,
    ask_agent,
)


def test_ask_agent_sends_history_and_token() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"reply": "Pepper is ready on Nov 2."})

    history = [{"role": "user", "content": "When is Pepper ready?"}]
    reply = ask_agent(
        history,
        "token-1",
        base_url="http://portal.test",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    assert reply == "Pepper is ready on Nov 2."
    [request] = seen
    assert request.url == "http://portal.test/api/agent"
    assert request.headers["authorization"] == "Bearer token-1"
    assert json.loads(request.content) == {"messages": history}


def test_ask_agent_failure_is_friendly() -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda r: httpx.Response(401, json={"error": "Unauthorized"}))
    )
    assert ask_agent([], None, base_url="http://portal.test", http_client=client) == FAILURE_REPLY
