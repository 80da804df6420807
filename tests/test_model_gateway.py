import logging
import threading
import time

import pytest

from conftest import FakeClient
from trip_assistant.core.errors import GatewayError, GatewayErrorKind, GatewayTimeoutError
from trip_assistant.llm.model_gateway import ModelGateway, RateLimiter, classify_error, suggested_backoff
from trip_assistant.models.itinerary import StructuredItinerary


def test_rate_limiter_spaces_dispatches_by_min_interval(clock):
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    first = limiter.acquire()
    second = limiter.acquire()
    assert second - first >= 1.0
    assert clock.sleeps == [1.0]


def test_rate_limiter_only_sleeps_the_remainder(clock):
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    clock.advance(0.4)
    limiter.acquire()
    assert clock.sleeps == [pytest.approx(0.6)]


def test_rate_limiter_does_not_sleep_after_a_long_gap(clock):
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    clock.advance(5)
    limiter.acquire()
    assert clock.sleeps == []


def test_back_to_back_gateway_calls_are_throttled(gateway, fake_client, clock):
    fake_client.responses = ["one", "two"]
    assert gateway.generate_text("first prompt") == "one"
    first_dispatch = gateway.last_call_time
    assert gateway.generate_text("second prompt") == "two"
    assert gateway.last_call_time - first_dispatch >= 1.0
    assert gateway.dispatch_count == 2


def test_generate_json_passes_the_schema(gateway, fake_client):
    fake_client.responses = ["{}"]
    gateway.generate_json("prompt", StructuredItinerary)
    assert fake_client.calls[0]["schema"] is StructuredItinerary


def test_timeout_raises_distinct_error_without_waiting_for_the_call():
    release = threading.Event()
    client = FakeClient([lambda: release.wait(2) and "late"])
    gw = ModelGateway(client=client, rate_limiter=RateLimiter(0), timeout_seconds=0.05, heartbeat_seconds=0)
    try:
        started = time.monotonic()
        with pytest.raises(GatewayTimeoutError) as err:
            gw.generate_text("slow prompt")
        assert time.monotonic() - started < 1.5
        assert err.value.kind == GatewayErrorKind.TIMEOUT
        assert gw.last_error_kind == GatewayErrorKind.TIMEOUT
    finally:
        release.set()
        gw.shutdown()


def test_heartbeat_logs_while_in_flight_and_stops_after(caplog):
    caplog.set_level(logging.INFO, logger="trip_assistant")
    client = FakeClient([lambda: time.sleep(0.2) or "done"])
    gw = ModelGateway(client=client, rate_limiter=RateLimiter(0), timeout_seconds=2, heartbeat_seconds=0.02)
    try:
        assert gw.generate_text("prompt", step="extraction") == "done"
    finally:
        gw.shutdown()

    assert any("still in flight step=extraction" in r.getMessage() for r in caplog.records)
    assert not [t for t in threading.enumerate() if t.name.startswith("heartbeat-") and t.is_alive()]


@pytest.mark.parametrize(
    "exc, expected",
    [
        (TimeoutError(), GatewayErrorKind.TIMEOUT),
        (RuntimeError("Gemini API call failed: 504 Deadline Exceeded"), GatewayErrorKind.TIMEOUT),
        (RuntimeError("Gemini API call failed: 401 UNAUTHENTICATED"), GatewayErrorKind.AUTHENTICATION),
        (RuntimeError("Missing GEMINI_API_KEY in environment or .env"), GatewayErrorKind.AUTHENTICATION),
        (RuntimeError("Gemini API call failed: quota exceeded, check billing"), GatewayErrorKind.QUOTA),
        (RuntimeError("Gemini API call failed: 429 Too Many Requests"), GatewayErrorKind.RATE_LIMITED),
        (RuntimeError("Gemini response blocked by safety filters: SAFETY"), GatewayErrorKind.CONTENT_BLOCKED),
        (RuntimeError("Gemini API call failed: Connection reset by peer"), GatewayErrorKind.NETWORK),
        (RuntimeError("Gemini API call failed: 503 Service Unavailable"), GatewayErrorKind.NETWORK),
        (RuntimeError("something odd happened"), GatewayErrorKind.UNKNOWN),
    ],
)
def test_classify_error(exc, expected):
    assert classify_error(exc) == expected


@pytest.mark.parametrize("n, expected", [(0, 0.0), (1, 5.0), (2, 10.0), (3, 20.0), (4, 30.0), (7, 30.0)])
def test_suggested_backoff_is_capped_exponential(n, expected):
    assert suggested_backoff(n, base=5, cap=30) == expected


def test_rate_limits_grow_backoff_and_success_resets(gateway, fake_client):
    limited = RuntimeError("Gemini API call failed: 429 RATE LIMIT")
    fake_client.responses = [limited, limited, limited, "ok"]

    waits = []
    for _ in range(3):
        with pytest.raises(GatewayError) as err:
            gateway.generate_text("prompt")
        assert err.value.kind == GatewayErrorKind.RATE_LIMITED
        waits.append(err.value.retry_after_seconds)

    assert waits == [5.0, 10.0, 20.0]
    assert gateway.consecutive_rate_limits == 3
    assert gateway.status().suggested_retry_after_seconds == 20.0

    assert gateway.generate_text("prompt") == "ok"
    assert gateway.consecutive_rate_limits == 0
    # No automatic retries: exactly one dispatch per request.
    assert len(fake_client.calls) == 4


def test_gateway_errors_carry_user_safe_wording(gateway, fake_client):
    fake_client.responses = [RuntimeError("Gemini API call failed: 401 key=sk-secret-123")]
    with pytest.raises(GatewayError) as err:
        gateway.generate_text("prompt")
    assert "sk-secret-123" not in err.value.user_message
    assert err.value.step == "generate_text"


def test_status_makes_no_model_call(gateway, fake_client, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    status = gateway.status()
    assert fake_client.calls == []
    assert status.api_key_configured is True
    assert status.dispatch_count == 0
    assert status.seconds_since_last_call is None
    assert status.as_dict()["recommendation"] == "The model gateway is ready."


def test_status_without_key_recommends_configuration(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    gw = ModelGateway(rate_limiter=RateLimiter(0), heartbeat_seconds=0)
    try:
        status = gw.status()
        assert status.api_key_configured is False
        assert "GEMINI_API_KEY" in status.recommendation
    finally:
        gw.shutdown()


def test_missing_key_surfaces_as_authentication_error(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    gw = ModelGateway(rate_limiter=RateLimiter(0), heartbeat_seconds=0)
    try:
        with pytest.raises(GatewayError) as err:
            gw.generate_text("prompt")
        assert err.value.kind == GatewayErrorKind.AUTHENTICATION
    finally:
        gw.shutdown()
