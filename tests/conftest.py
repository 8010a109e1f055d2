"""Shared fixtures: settings, a seeded memory store and a scripted completion service."""

import json
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Tuple,
)

import httpx
import pytest

from puppyportal.agent.completion_client import CompletionClient
from puppyportal.config import Settings
from puppyportal.core.schema import Caller
from puppyportal.store.memory import MemoryStore

PUPPIES = [
    {"id": "p1", "name": "Biscuit", "status": "READY", "ready_date": "2026-11-20", "price": 2200},
    {"id": "p2", "name": "Pepper", "status": "READY", "ready_date": "2026-11-02", "price": 2400},
    {"id": "p3", "name": "Churro", "status": "READY", "ready_date": "2026-11-09", "price": 2000},
    {"id": "p4", "name": "Mochi", "status": "SOLD", "ready_date": "2026-10-01", "price": 2500},
    {"id": "p5", "name": "Taco", "status": "RESERVED", "ready_date": "2026-12-01", "price": 2300,
     "dob": "2026-09-01"},
]

APPLICATIONS = [
    {"id": "a1", "buyer_id": "buyer-1", "created_at": "2026-08-01T10:00:00Z", "status": "SUBMITTED"},
    {"id": "a2", "buyer_id": "buyer-1", "created_at": "2026-09-01T10:00:00Z", "status": "REVIEW"},
    {"id": "a3", "buyer_id": "buyer-1", "created_at": "2026-10-01T10:00:00Z", "status": "APPROVED"},
    {"id": "a4", "buyer_id": "buyer-1", "created_at": "2026-07-01T10:00:00Z", "status": "DENIED"},
    {"id": "a5", "buyer_id": "buyer-2", "created_at": "2026-10-10T10:00:00Z", "status": "SUBMITTED"},
]

WEIGHTS = [
    {"id": "w1", "puppy_id": "p5", "week": 4, "ounces": 12, "measured_at": "2026-09-29"},
    {"id": "w2", "puppy_id": "p5", "week": 6, "ounces": 20, "measured_at": "2026-10-13"},
]

ASSIGNMENTS = [
    {"buyer_id": "buyer-1", "puppy_id": "p5"},
    {"buyer_id": "buyer-2", "puppy_id": "p1"},
]

MILESTONES = [
    {"id": 2, "puppy_id": "p5", "week": 4, "done": True, "note": "Loves the squeaky toy"},
    {"id": 1, "puppy_id": "p5", "week": 2, "done": True, "note": None},
]


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        LLM_API_URL="https://llm.test/v1/chat/completions",
        LLM_API_KEY="test-key",
        LLM_MODEL="test-model",
        STORE="memory",
        SUPABASE_URL="https://project.supabase.test",
        SUPABASE_ANON_KEY="anon-key",
        SITE_URL="https://portal.test",
    )


@pytest.fixture
def caller() -> Caller:
    return Caller(id="buyer-1", email="buyer1@example.com", access_token="token-1")


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(
        {
            "puppies": PUPPIES,
            "applications": APPLICATIONS,
            "puppy_assignments": ASSIGNMENTS,
            "puppy_weights": WEIGHTS,
            "puppy_milestones": MILESTONES,
        }
    )


# ---------------------------------------------------------------------------
# Scripted completion service
# ---------------------------------------------------------------------------
def tool_call(call_id: str, name: str, arguments: Any = None) -> Dict[str, Any]:
    """One entry of a response's ``tool_calls`` array, arguments JSON-encoded like OpenAI does."""
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments or {})
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


def completion(content: Optional[str] = None, tool_calls: Optional[List[Any]] = None) -> Dict:
    """A chat-completions response body."""
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {"id": "cmpl-1", "choices": [{"index": 0, "message": message}]}


class ScriptedLLM:
    """Fake completion endpoint answering requests from a fixed script."""

    def __init__(self) -> None:
        self.script: List[Tuple[int, Any]] = []
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []

    def reply(self, body: Any, status: int = 200) -> "ScriptedLLM":
        self.script.append((status, body))
        return self

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        self.headers.append(request.headers)
        if not self.script:
            raise AssertionError("Completion service called more often than scripted")
        status, body = self.script.pop(0)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def client(self, settings: Settings) -> CompletionClient:
        transport = httpx.MockTransport(self._handle)
        return CompletionClient(settings, http_client=httpx.Client(transport=transport))


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()
