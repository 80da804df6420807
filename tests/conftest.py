import json

import pytest

from trip_assistant.core.orchestrator import DialogueOrchestrator
from trip_assistant.llm.model_gateway import ModelGateway, RateLimiter


class FakeClock:
    """Monotonic clock whose sleep() advances time instead of blocking."""

    def __init__(self, start=100.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds):
        self.now += seconds


class FakeClient:
    """Scripted stand-in for GeminiClient. Each call pops the next response (str, exception or callable)."""

    model_name = "fake-model"

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def _next(self, kind, prompt, schema=None):
        self.calls.append({"kind": kind, "prompt": prompt, "schema": schema})
        if not self.responses:
            raise AssertionError("unexpected model call")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item()
        return item

    def generate_text(self, prompt):
        return self._next("text", prompt)

    def generate_json(self, prompt, schema):
        return self._next("json", prompt, schema)


def build_itinerary(days=3, duration=None):
    return {
        "tripOverview": {
            "title": "Relaxed Goa Getaway",
            "description": "Beaches, food and old churches at an easy pace.",
            "totalBudget": "$1,200",
            "duration": duration or f"{days} days",
            "highlights": ["Calangute beach", "Old Goa churches"],
        },
        "dailyItinerary": [
            {
                "day": n,
                "date": f"Day {n}",
                "title": f"Day {n} in Goa",
                "activities": [
                    {"time": "09:00 AM", "title": "Breakfast", "description": "Cafe by the sea", "location": "Baga", "type": "food"},
                    {"time": "01:00 PM", "title": "Beach time", "description": "Swim and relax", "location": "Calangute", "type": "activity"},
                    {"time": "07:00 PM", "title": "Dinner", "description": "Goan seafood", "location": "Panjim", "type": "food"},
                ],
            }
            for n in range(1, days + 1)
        ],
        "accommodations": [
            {"name": "Sea Breeze Resort", "type": "resort", "priceRange": "$80-120", "location": "Baga", "highlights": ["Pool"]},
        ],
        "restaurants": [
            {"name": "Fisherman's Wharf", "cuisine": "Goan", "priceRange": "$$", "location": "Panjim", "mustTry": ["Fish curry"]},
        ],
        "transportation": {
            "gettingThere": "Fly into Goa airport and take a prepaid taxi to the hotel.",
            "localTransport": [{"mode": "Scooter", "description": "Rent a scooter for short hops", "cost": "$6/day"}],
            "tips": ["Agree on taxi fares up front"],
        },
        "practicalInfo": {
            "weather": "Warm and humid, around 30C during the day.",
            "currency": "Indian Rupee (INR)",
            "language": "Konkani, English",
            "emergencyNumbers": ["112"],
            "culturalTips": ["Dress modestly in churches"],
            "packingEssentials": ["Sunscreen", "Light cotton clothes"],
        },
        "budgetBreakdown": {
            "accommodation": "$400",
            "food": "$300",
            "transport": "$200",
            "activities": "$300",
            "total": "$1,200",
        },
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def gateway(fake_client, clock):
    gw = ModelGateway(
        client=fake_client,
        rate_limiter=RateLimiter(1.0, clock=clock, sleep=clock.sleep),
        timeout_seconds=5.0,
        heartbeat_seconds=0,
    )
    yield gw
    gw.shutdown()


@pytest.fixture
def orchestrator(gateway):
    return DialogueOrchestrator(gateway=gateway)


@pytest.fixture
def make_itinerary():
    def _make(days=3, duration=None, as_text=True):
        doc = build_itinerary(days=days, duration=duration)
        return json.dumps(doc) if as_text else doc

    return _make
