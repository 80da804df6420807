# Role: LLM-backed slot extraction. Builds the context prompt, makes one structured call, parses defensively
# and drops any extracted string that trips the security filter. It returns updates only: merging into state
# and the input-history append belong to the orchestrator.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

import trip_assistant.config as config
from trip_assistant.core.security_filter import SecurityFilter
from trip_assistant.llm.model_gateway import ModelGateway
from trip_assistant.models.clarification import ClarificationState, is_meaningful
from trip_assistant.models.user_profile import UserProfile
from trip_assistant.prompts.extraction_prompt import build_extraction_prompt
from trip_assistant.utils.json_parsing import parse_json_object
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)


class ExtractedSlots(BaseModel):
    # Response schema for the structured call; camelCase keys match the state wire format.
    destination: Optional[str] = None
    source: Optional[str] = None
    travelDates: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    duration: Optional[str] = None
    groupType: Optional[str] = None
    budget: Optional[str] = None
    domesticOrInternational: Optional[str] = None
    modeOfTransport: Optional[str] = None
    carModel: Optional[str] = None
    flightPreferences: Optional[str] = None
    accommodation: Optional[str] = None
    travelPace: Optional[str] = None
    occasion: Optional[str] = None
    foodPreference: Optional[str] = None
    specialNeeds: Optional[str] = None
    climatePreference: Optional[str] = None
    interests: Optional[List[str]] = None
    tripTheme: Optional[str] = None
    flexibleBudget: Optional[bool] = None
    flexibleDates: Optional[bool] = None


@dataclass(frozen=True)
class ExtractionResult:
    updates: Dict[str, Any]
    parsed: bool
    prompt: str
    raw_text: str
    dropped: List[str] = field(default_factory=list)


class SlotExtractor:
    def __init__(
        self,
        gateway: Optional[ModelGateway] = None,
        security_filter: Optional[SecurityFilter] = None,
    ) -> None:
        self.gateway = gateway or ModelGateway()
        self.security_filter = security_filter or SecurityFilter()

    def extract(
        self,
        user_message: str,
        state: ClarificationState,
        recent_messages: Optional[List[Dict[str, str]]] = None,
        profile: Optional[UserProfile] = None,
    ) -> ExtractionResult:
        # 1) Bound history to the last N exchanges
        # 2) Build prompt and call the model once (structured output)
        # 3) Parse defensively; a parse failure means "nothing extracted"
        # 4) Drop values that trip the security filter
        window = (recent_messages or [])[-config.HISTORY_EXCHANGES * 2 :]
        hints = profile.personalization_summary() if profile else ""
        prompt = build_extraction_prompt(user_message, state, recent_messages=window, profile_hints=hints)

        raw = self.gateway.generate_json(prompt, ExtractedSlots, step="extraction")
        logger.debug("Slot extractor raw output=%r", raw)

        result = parse_json_object(raw)
        if not result.ok:
            logger.warning("Extraction parse failed method=%s error=%s", result.method, result.error)
            return ExtractionResult(updates={}, parsed=False, prompt=prompt, raw_text=raw)

        if result.repaired:
            logger.info("Extraction output repaired method=%s", result.method)

        updates, dropped = self._screen(result.data)
        logger.info(
            "Extraction done fields=%s dropped=%s",
            sorted(k for k, v in updates.items() if is_meaningful(v)),
            dropped,
        )
        return ExtractionResult(updates=updates, parsed=True, prompt=prompt, raw_text=raw, dropped=dropped)

    def _screen(self, data: Dict[str, Any]):
        updates: Dict[str, Any] = {}
        dropped: List[str] = []
        for key, value in data.items():
            if isinstance(value, str) and self.security_filter.is_adversarial(value):
                dropped.append(key)
                continue
            if isinstance(value, list):
                kept = [v for v in value if not (isinstance(v, str) and self.security_filter.is_adversarial(v))]
                if len(kept) != len(value):
                    dropped.append(key)
                value = kept
            updates[key] = value

        if dropped:
            logger.warning("Dropped extracted values tripping security filter fields=%s", dropped)
        return updates, dropped
