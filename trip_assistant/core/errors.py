# Role: Error taxonomy. Lower layers raise these; DialogueOrchestrator is the only place that turns them
# into user-facing wording.

from __future__ import annotations

from enum import Enum
from typing import Optional


class GatewayErrorKind(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    QUOTA = "quota"
    CONTENT_BLOCKED = "content_blocked"
    UNKNOWN = "unknown"


USER_MESSAGES = {
    GatewayErrorKind.TIMEOUT: "The travel planner took too long to respond. Please try again in a moment.",
    GatewayErrorKind.RATE_LIMITED: "The travel planner is receiving too many requests right now. Please wait a little and try again.",
    GatewayErrorKind.NETWORK: "I couldn't reach the travel planning service. Please check your connection and try again.",
    GatewayErrorKind.AUTHENTICATION: "The travel planning service is not configured correctly. Please contact support.",
    GatewayErrorKind.QUOTA: "The travel planning service has reached its usage limit. Please try again later.",
    GatewayErrorKind.CONTENT_BLOCKED: "I couldn't generate a response for that request. Please rephrase and try again.",
    GatewayErrorKind.UNKNOWN: "Something went wrong while planning your trip. Please try again.",
}


class TripAssistantError(Exception):
    """Base class for errors raised inside the assistant."""


class GatewayError(TripAssistantError):
    def __init__(
        self,
        kind: GatewayErrorKind,
        user_message: Optional[str] = None,
        retry_after_seconds: Optional[float] = None,
        step: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.user_message = user_message or USER_MESSAGES[kind]
        self.retry_after_seconds = retry_after_seconds
        self.step = step
        super().__init__(self.user_message)


class GatewayTimeoutError(GatewayError):
    def __init__(self, timeout_seconds: float, step: Optional[str] = None) -> None:
        super().__init__(GatewayErrorKind.TIMEOUT, step=step)
        self.timeout_seconds = timeout_seconds
