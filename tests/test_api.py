import json

import pytest
from fastapi.testclient import TestClient

from trip_assistant.api.deps import get_orchestrator
from trip_assistant.main import app


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["docs"] == "/docs"


def test_clarify_round_trip_uses_camel_case(client, fake_client):
    fake_client.responses = [json.dumps({"groupType": "Couple", "travelDates": "June"})]
    body = {
        "freeTextInput": "me and my partner in June",
        "currentState": {"destination": "Goa", "groupType": "", "inputHistory": ["Goa"]},
        "recentMessages": [{"role": "User", "content": "Goa"}, {"role": "robot", "content": "dropped"}],
        "userProfile": None,
    }
    response = client.post("/clarify", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["nextPrompt"] == "What's your approximate budget for this trip?"
    assert data["updatedState"]["groupType"] == "couple"
    assert data["updatedState"]["travelDates"] == "June"
    assert data["updatedState"]["inputHistory"] == ["Goa", "me and my partner in June"]
    assert data["updatedState"]["isPlanReady"] is False
    assert [t["step"] for t in data["thoughtChain"]] == ["extraction", "planner"]
    assert "user: Goa" in fake_client.calls[0]["prompt"]


def test_clarify_accepts_missing_fields(client):
    response = client.post("/clarify", json={"freeTextInput": None, "currentState": None})
    assert response.status_code == 200
    assert response.json()["nextPrompt"] == "Please tell me about your trip. Where would you like to go?"


def test_quota_status_makes_no_call(client, fake_client):
    data = client.get("/quota/status").json()
    assert data["apiKeyConfigured"] is True
    assert data["model"] == "fake-model"
    assert data["dispatchCount"] == 0
    assert data["consecutiveRateLimits"] == 0
    assert fake_client.calls == []
