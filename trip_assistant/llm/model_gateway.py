# Role: The only path to the model. One gateway object is built per process and handed to every caller:
# it throttles dispatches (min interval), bounds each call with a timeout, logs a heartbeat while a call is in
# flight, and classifies failures into typed, user-safe GatewayErrors. It never retries.

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel

import trip_assistant.config as config
from trip_assistant.core.errors import GatewayError, GatewayErrorKind, GatewayTimeoutError
from trip_assistant.llm.gemini_client import GeminiClient
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

# Checked in order; the first group with a matching keyword wins.
_ERROR_KEYWORDS = (
    (GatewayErrorKind.TIMEOUT, ("timeout", "timed out", "deadline exceeded", "deadline_exceeded")),
    (
        GatewayErrorKind.AUTHENTICATION,
        ("401", "403", "api key", "api_key", "permission", "unauthenticated", "unauthorized"),
    ),
    (GatewayErrorKind.QUOTA, ("quota", "billing")),
    (
        GatewayErrorKind.RATE_LIMITED,
        ("429", "rate limit", "rate-limit", "ratelimit", "resource exhausted", "resource_exhausted", "too many requests"),
    ),
    (GatewayErrorKind.CONTENT_BLOCKED, ("safety", "blocked")),
    (
        GatewayErrorKind.NETWORK,
        ("network", "connection", "connect", "503", "unavailable", "dns", "socket", "name resolution"),
    ),
)


def classify_error(exc: BaseException) -> GatewayErrorKind:
    if isinstance(exc, TimeoutError):
        return GatewayErrorKind.TIMEOUT

    message = f"{type(exc).__name__} {exc}".lower()
    for kind, keywords in _ERROR_KEYWORDS:
        if any(k in message for k in keywords):
            return kind
    return GatewayErrorKind.UNKNOWN


def suggested_backoff(
    consecutive_rate_limits: int,
    base: Optional[float] = None,
    cap: Optional[float] = None,
) -> float:
    # n-th consecutive rate limit -> min(base * 2^(n-1), cap). Advisory only.
    if consecutive_rate_limits <= 0:
        return 0.0
    base = config.RATE_LIMIT_BACKOFF_BASE_SECONDS if base is None else base
    cap = config.RATE_LIMIT_BACKOFF_CAP_SECONDS if cap is None else cap
    return min(base * 2 ** (consecutive_rate_limits - 1), cap)


class RateLimiter:
    """
    In-process throttle: no two dispatches closer than min_interval seconds.

    Clock and sleep are injectable so tests can drive time without sleeping.
    Concurrent callers are serialized on the lock.
    """

    def __init__(
        self,
        min_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = config.MIN_INTERVAL_SECONDS if min_interval is None else min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self.last_call_time: Optional[float] = None

    def acquire(self) -> float:
        # 1) Sleep the remainder of the interval since the previous dispatch
        # 2) Stamp last_call_time at dispatch (not completion) and return it
        with self._lock:
            now = self._clock()
            if self.last_call_time is not None:
                remaining = self.min_interval - (now - self.last_call_time)
                if remaining > 0:
                    logger.debug("Throttling model call wait=%.3fs", remaining)
                    self._sleep(remaining)
                    now = self._clock()
            self.last_call_time = now
            return now

    def seconds_since_last_call(self) -> Optional[float]:
        if self.last_call_time is None:
            return None
        return max(self._clock() - self.last_call_time, 0.0)


class _Heartbeat:
    # Periodic "still waiting" log scoped to one call; stopped as soon as the call settles.

    def __init__(self, interval: float, step: str) -> None:
        self.interval = interval
        self.step = step
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=f"heartbeat-{step}", daemon=True)

    def _run(self) -> None:
        elapsed = 0.0
        while not self._stop.wait(self.interval):
            elapsed += self.interval
            logger.info("Model call still in flight step=%s elapsed=%.0fs", self.step, elapsed)

    def __enter__(self) -> "_Heartbeat":
        if self.interval > 0:
            self._thread.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout=1.0)


@dataclass(frozen=True)
class GatewayStatus:
    api_key_configured: bool
    model: str
    dispatch_count: int
    seconds_since_last_call: Optional[float]
    consecutive_rate_limits: int
    suggested_retry_after_seconds: float
    last_error_kind: Optional[str]
    recommendation: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "apiKeyConfigured": self.api_key_configured,
            "model": self.model,
            "dispatchCount": self.dispatch_count,
            "secondsSinceLastCall": self.seconds_since_last_call,
            "consecutiveRateLimits": self.consecutive_rate_limits,
            "suggestedRetryAfterSeconds": self.suggested_retry_after_seconds,
            "lastErrorKind": self.last_error_kind,
            "recommendation": self.recommendation,
        }


class ModelGateway:
    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout_seconds: Optional[float] = None,
        heartbeat_seconds: Optional[float] = None,
        max_workers: int = 4,
    ) -> None:
        # Key line: the real client is built lazily so a missing key surfaces as a classified auth error.
        self._client = client
        self.rate_limiter = rate_limiter or RateLimiter()
        self.timeout_seconds = config.CALL_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.heartbeat_seconds = config.HEARTBEAT_SECONDS if heartbeat_seconds is None else heartbeat_seconds

        # Long-lived pool: a timed-out call keeps running in its worker, only the waiter gives up.
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="model-call")
        self._state_lock = threading.Lock()
        self._client_lock = threading.Lock()
        self.dispatch_count = 0
        self.consecutive_rate_limits = 0
        self.last_error_kind: Optional[GatewayErrorKind] = None

    @property
    def client(self) -> GeminiClient:
        with self._client_lock:
            if self._client is None:
                self._client = GeminiClient()
            return self._client

    @property
    def last_call_time(self) -> Optional[float]:
        return self.rate_limiter.last_call_time

    def generate_text(self, prompt: str, step: str = "generate_text") -> str:
        return self._call(step, lambda: self.client.generate_text(prompt))

    def generate_json(self, prompt: str, schema: Type[BaseModel], step: str = "generate_json") -> str:
        return self._call(step, lambda: self.client.generate_json(prompt, schema))

    def _call(self, step: str, fn: Callable[[], str]) -> str:
        # 1) Throttle
        # 2) Dispatch on the worker pool
        # 3) Wait at most timeout_seconds, heartbeat while waiting
        # 4) Classify failures; reset the rate-limit streak on success
        self.rate_limiter.acquire()
        with self._state_lock:
            self.dispatch_count += 1
            dispatch_no = self.dispatch_count
        logger.debug("Dispatching model call step=%s dispatch=%d", step, dispatch_no)

        started = time.monotonic()
        future = self._executor.submit(fn)
        with _Heartbeat(self.heartbeat_seconds, step):
            done, _ = wait([future], timeout=self.timeout_seconds)

        if not done:
            self._record_failure(GatewayErrorKind.TIMEOUT)
            logger.error(
                "Model call failed kind=%s step=%s timeout=%.1fs retry_after=None",
                GatewayErrorKind.TIMEOUT.value,
                step,
                self.timeout_seconds,
            )
            raise GatewayTimeoutError(self.timeout_seconds, step=step)

        try:
            result = future.result()
        except Exception as e:
            raise self._classified(e, step) from e

        with self._state_lock:
            self.consecutive_rate_limits = 0
            self.last_error_kind = None
        logger.debug("Model call finished step=%s elapsed=%.2fs chars=%d", step, time.monotonic() - started, len(result or ""))
        return result

    def _record_failure(self, kind: GatewayErrorKind) -> int:
        with self._state_lock:
            self.last_error_kind = kind
            if kind == GatewayErrorKind.RATE_LIMITED:
                self.consecutive_rate_limits += 1
            return self.consecutive_rate_limits

    def _classified(self, exc: Exception, step: str) -> GatewayError:
        kind = classify_error(exc)
        streak = self._record_failure(kind)

        retry_after = suggested_backoff(streak) if kind == GatewayErrorKind.RATE_LIMITED else None
        logger.error("Model call failed kind=%s step=%s retry_after=%s error=%s", kind.value, step, retry_after, exc)

        if kind == GatewayErrorKind.TIMEOUT:
            return GatewayTimeoutError(self.timeout_seconds, step=step)
        return GatewayError(kind, retry_after_seconds=retry_after, step=step)

    def status(self) -> GatewayStatus:
        # Diagnostic snapshot; never makes a model call.
        key_ok = config.api_key_configured() or (self._client is not None)
        with self._state_lock:
            streak = self.consecutive_rate_limits
            last_kind = self.last_error_kind
            count = self.dispatch_count
        retry_after = suggested_backoff(streak)

        if not key_ok:
            recommendation = "Set GEMINI_API_KEY in the environment or .env file."
        elif last_kind == GatewayErrorKind.QUOTA:
            recommendation = "Quota exhausted. Wait for the quota to reset or upgrade the plan."
        elif streak:
            recommendation = f"Rate limited. Wait about {retry_after:.0f} seconds before the next request."
        elif last_kind == GatewayErrorKind.AUTHENTICATION:
            recommendation = "The API key was rejected. Check that it is valid and has access to the model."
        else:
            recommendation = "The model gateway is ready."

        return GatewayStatus(
            api_key_configured=key_ok,
            model=getattr(self._client, "model_name", None) or config.GEMINI_MODEL,
            dispatch_count=count,
            seconds_since_last_call=self.rate_limiter.seconds_since_last_call(),
            consecutive_rate_limits=streak,
            suggested_retry_after_seconds=retry_after,
            last_error_kind=last_kind.value if last_kind else None,
            recommendation=recommendation,
        )

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
