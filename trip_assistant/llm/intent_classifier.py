# Role: First-turn gate. One model call returning a single label (travel / greeting / other).
# Parsing is defensive; when no allowed label can be recovered the result is travel (fail-open),
# since the security and filler gates have already run.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from trip_assistant.llm.model_gateway import ModelGateway
from trip_assistant.models.intent import Intent
from trip_assistant.prompts.intent_prompt import build_intent_prompt
from trip_assistant.utils.json_parsing import parse_json_object
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

_LABEL_WORD = re.compile(r"\b(travel|greeting|other)\b", re.IGNORECASE)


@dataclass(frozen=True)
class IntentResult:
    intent: Intent
    prompt: str
    raw_text: str
    parsed: bool


class IntentClassifier:
    def __init__(self, gateway: Optional[ModelGateway] = None) -> None:
        self.gateway = gateway or ModelGateway()

    def classify(self, user_message: str) -> IntentResult:
        # 1) Build strict one-label prompt
        # 2) Call the model once
        # 3) Parse: JSON {"intent": ...}, then a bare or quoted label word
        prompt = build_intent_prompt(user_message)
        raw = self.gateway.generate_text(prompt, step="intent")
        logger.debug("Intent classifier raw output=%r", raw)

        intent = self._parse_label(raw)
        if intent is None:
            logger.warning("Intent label not recognized, defaulting to travel raw=%r", (raw or "")[:80])
            return IntentResult(intent=Intent.TRAVEL, prompt=prompt, raw_text=raw, parsed=False)

        logger.info("Intent classified intent=%s", intent.value)
        return IntentResult(intent=intent, prompt=prompt, raw_text=raw, parsed=True)

    def _parse_label(self, raw: str) -> Optional[Intent]:
        result = parse_json_object(raw)
        if result.ok:
            label = self._to_intent(result.data.get("intent"))
            if label is not None:
                return label

        match = _LABEL_WORD.search(raw or "")
        return self._to_intent(match.group(1)) if match else None

    @staticmethod
    def _to_intent(value: Any) -> Optional[Intent]:
        if not isinstance(value, str):
            return None
        try:
            return Intent(value.strip().strip("\"'").lower())
        except ValueError:
            return None
