"""HTTP-level tests for the portal API."""

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from conftest import (
    completion,
    tool_call,
)
from puppyportal.api.app import (
    LOCAL_CALLER,
    app,
    get_completion_client,
    get_identity_provider,
    get_settings,
    get_store,
)
from puppyportal.api.models import normalize_conversation
from puppyportal.auth import (
    StaticIdentityProvider,
    SupabaseIdentityProvider,
)
from puppyportal.core.schema import Caller

AUTH = {"Authorization": "Bearer token-1"}
OTHER_BUYER_AUTH = {"Authorization": "Bearer token-2"}


@pytest.fixture
def client(llm, settings, caller, store) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_identity_provider] = lambda: StaticIdentityProvider(
        {"token-1": caller, "token-2": Caller(id="buyer-2", email="buyer2@example.com")}
    )
    app.dependency_overrides[get_completion_client] = lambda: llm.client(settings)
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "x"}])
def test_agent_requires_identity(client, llm, store, headers) -> None:
    """No or unknown identity: 401 with the fixed body and no downstream calls."""

    resp = client.post(
        "/api/agent",
        json={"messages": [{"role": "user", "content": "message the breeder: hi"}]},
        headers=headers,
    )
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    assert llm.requests == []
    assert store.tables["messages"] == []


def test_agent_reply(client, llm) -> None:
    """A signed-in caller gets the round-2 reply."""

    llm.reply(completion(None, [tool_call("c1", "list_available_puppies", {"limit": 2})]))
    llm.reply(completion("Pepper and Churro are ready soon."))

    resp = client.post(
        "/api/agent",
        json={"messages": [{"role": "user", "content": "show me available puppies"}]},
        headers=AUTH,
    )
    assert resp.status_code == 200
    assert resp.json() == {"reply": "Pepper and Churro are ready soon."}


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"messages": "hello"},
        {"messages": {"role": "user", "content": "hi"}},
        {"messages": [{"role": "user"}]},
        {"messages": [{"role": "wizard", "content": "hi"}]},
        {"messages": [{"role": "user", "content": "ok"}, "stray"]},
        [1, 2, 3],
    ],
)
def test_malformed_messages_behave_like_empty(client, llm, body) -> None:
    """Malformed payloads are an empty conversation, never an error."""

    llm.reply(completion("Hi! How can I help?"))
    llm.reply(completion("Hi! How can I help?"))

    resp = client.post("/api/agent", json=body, headers=AUTH)

    assert resp.status_code == 200
    assert resp.json() == {"reply": "Hi! How can I help?"}
    assert [m["role"] for m in llm.requests[0]["messages"]] == ["system"]


def test_non_json_body_behaves_like_empty(client, llm) -> None:
    llm.reply(completion("Hello"))
    llm.reply(completion("Hello"))

    resp = client.post(
        "/api/agent", content=b"not json", headers={**AUTH, "content-type": "application/json"}
    )
    assert resp.status_code == 200
    assert [m["role"] for m in llm.requests[0]["messages"]] == ["system"]


def test_upstream_failure_maps_to_502(client, llm, store) -> None:
    """A failing completion service is a generic 5xx with no reply and no tool runs."""

    llm.reply("boom", status=500)

    resp = client.post(
        "/api/agent",
        json={"messages": [{"role": "user", "content": "message the breeder"}]},
        headers=AUTH,
    )
    assert resp.status_code == 502
    assert "reply" not in resp.json()
    assert store.tables["messages"] == []


def test_growth_report(client) -> None:
    """Growth endpoint projects adult weight from the latest weigh-in."""

    resp = client.get("/puppies/p5/growth", headers=AUTH)
    assert resp.status_code == 200
    data = resp.json()
    assert data["puppy_id"] == "p5"
    assert [w["id"] for w in data["weights"]] == ["w1", "w2"]
    # 20 oz at week 6 -> 1.25 lb * 4
    assert data["projected_adult_weight_lb"] == 5.0
    assert len(data["milestones"]) == 8
    week_four = data["milestones"][3]
    assert week_four["week"] == 4
    assert week_four["done"] is True
    assert week_four["note"] == "Loves the squeaky toy"
    assert data["milestones"][0]["done"] is False


def test_growth_report_unknown_puppy(client) -> None:
    resp = client.get("/puppies/nope/growth", headers=AUTH)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Puppy not found"}


def test_growth_report_of_another_buyers_puppy_is_not_found(client) -> None:
    """A buyer only sees the puppy assigned to them, even with a valid puppy id."""

    resp = client.get("/puppies/p5/growth", headers=OTHER_BUYER_AUTH)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Puppy not found"}

    assert client.get("/puppies/p1/growth", headers=OTHER_BUYER_AUTH).status_code == 200
    assert client.get("/puppies/p1/growth", headers=AUTH).status_code == 404


def test_growth_report_requires_identity(client) -> None:
    assert client.get("/puppies/p5/growth").status_code == 401


def test_normalize_conversation_keeps_order() -> None:
    """Well-formed conversations pass through unchanged and in order."""

    messages = normalize_conversation(
        {
            "messages": [
                {"role": "assistant", "content": "Hi!"},
                {"role": "user", "content": "Puppies?"},
            ]
        }
    )
    assert [(m.role, m.content) for m in messages] == [("assistant", "Hi!"), ("user", "Puppies?")]


def test_identity_provider_follows_injected_settings(settings) -> None:
    """The provider is built from the settings passed in, not the process-wide ones."""

    hosted = settings.model_copy(
        update={"STORE": "supabase", "SUPABASE_URL": "https://other.supabase.test/"}
    )
    provider = get_identity_provider(hosted)
    assert isinstance(provider, SupabaseIdentityProvider)
    assert provider.user_url == "https://other.supabase.test/auth/v1/user"
    assert get_identity_provider(hosted) is provider

    local = settings.model_copy(update={"STORE": "memory", "PORTAL_ACCESS_TOKEN": "dev-token"})
    caller = get_identity_provider(local).resolve("dev-token")
    assert caller is not None and caller.id == LOCAL_CALLER.id
    assert get_identity_provider(local).resolve("token-1") is None
