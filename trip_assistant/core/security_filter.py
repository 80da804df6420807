# Role: Coarse prompt-injection gate. Runs on the raw user input, every string already held in state and every
# string in the client profile, before any model call. Heuristic only: a fixed regex set for instruction-override phrasing.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from trip_assistant.models.clarification import ClarificationState
from trip_assistant.models.user_profile import UserProfile
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

REFUSAL_MESSAGE = "Sorry, your input could not be processed."

_INJECTION_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(?:ignore|disregard)\s+(?:(?:all|any|previous|earlier|prior|the)\s+)+instructions?\b",
        r"\bas\s+an?\s+(?:ai|assistant|language\s+model)\b",
        r"\brepeat\s+this\s+prompt\b",
        r"\byou\s+are\s+now\b",
        r"\bpretend\s+to\b",
        r"\bact\s+as\b",
        r"\bdo\s+anything\b",
        r"\bbypass\b",
        r"\bjailbreak",
    )
)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")
_ZERO_WIDTH = re.compile(r"[\u200B-\u200D\u2060\uFEFF]")


@dataclass(frozen=True)
class SecurityVerdict:
    blocked: bool
    field: Optional[str] = None


def remove_control_chars(text: str) -> str:
    # Keeps tab/newline; drops other control and zero-width characters that could split a phrase.
    return _ZERO_WIDTH.sub("", _CONTROL_CHARS.sub("", text or ""))


class SecurityFilter:
    def is_adversarial(self, text: Optional[str]) -> bool:
        if not text:
            return False
        cleaned = remove_control_chars(text)
        return any(p.search(cleaned) for p in _INJECTION_PATTERNS)

    def scan_state(self, state: ClarificationState) -> Optional[str]:
        # Returns the first field that trips, or None.
        for name, value in state.string_fields().items():
            if self.is_adversarial(value):
                return name
        return None

    def scan_profile(self, profile: Optional[UserProfile]) -> Optional[str]:
        # Profile strings reach prompts (hints, brief) and may become state.source, so they are untrusted too.
        if profile is None:
            return None
        for name, value in profile.string_fields().items():
            if self.is_adversarial(value):
                return f"user_profile.{name}"
        return None

    def scan_untrusted(self, state: ClarificationState, profile: Optional[UserProfile] = None) -> Optional[str]:
        return self.scan_state(state) or self.scan_profile(profile)

    def check_turn(
        self,
        text: Optional[str],
        state: ClarificationState,
        profile: Optional[UserProfile] = None,
    ) -> SecurityVerdict:
        # 1) Raw input
        # 2) Every string already in state (previously injected values, form submissions)
        # 3) Every string in the client-supplied profile
        if self.is_adversarial(text):
            logger.warning("Security filter tripped field=free_text_input")
            return SecurityVerdict(blocked=True, field="free_text_input")

        field = self.scan_untrusted(state, profile)
        if field:
            logger.warning("Security filter tripped field=%s", field)
            return SecurityVerdict(blocked=True, field=field)

        return SecurityVerdict(blocked=False)
