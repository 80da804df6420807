# Role: Final generation step. Assembles a brief from every non-empty state field plus locale/address hints and
# makes exactly one structured call with the StructuredItinerary schema. No retry, no regeneration.

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional

from pydantic import ValidationError

from trip_assistant.llm.model_gateway import ModelGateway
from trip_assistant.models.clarification import ClarificationState, is_meaningful
from trip_assistant.models.itinerary import StructuredItinerary
from trip_assistant.models.user_profile import UserProfile
from trip_assistant.prompts.itinerary_prompt import build_itinerary_prompt
from trip_assistant.utils.json_parsing import parse_json_object
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

_SKIP = {"inputHistory", "isPlanReady"}


@dataclass(frozen=True)
class GenerationResult:
    text: str
    prompt: str
    raw_text: str


def _label(wire_name: str) -> str:
    # "travelDates" -> "Travel dates"
    words = "".join(" " + c.lower() if c.isupper() else c for c in wire_name).strip()
    return words[:1].upper() + words[1:]


def build_brief(state: ClarificationState, profile: Optional[UserProfile] = None) -> List[str]:
    lines: List[str] = []
    for name, value in state.to_wire().items():
        if name in _SKIP:
            continue
        if isinstance(value, bool):
            if value:
                lines.append(f"{_label(name)}: yes")
            continue
        if isinstance(value, list):
            if value:
                lines.append(f"{_label(name)}: {', '.join(value)}")
            continue
        if is_meaningful(value):
            lines.append(f"{_label(name)}: {value}")

    if profile is not None:
        if profile.country:
            lines.append(f"Traveller home country: {profile.country}")
        if profile.city and not is_meaningful(state.source):
            lines.append(f"Traveller home city: {profile.city}")
        if profile.currency:
            lines.append(f"Show prices in: {profile.currency}")
        if profile.locale and profile.locale.timezone:
            lines.append(f"Traveller time zone: {profile.locale.timezone}")
    return lines


class ItineraryGenerator:
    def __init__(self, gateway: Optional[ModelGateway] = None) -> None:
        self.gateway = gateway or ModelGateway()

    def generate(self, state: ClarificationState, profile: Optional[UserProfile] = None) -> GenerationResult:
        # 1) Brief from state + profile
        # 2) One structured call
        # 3) Re-emit camelCase keys when the document matches the schema; otherwise pass the raw text on
        hints = profile.personalization_summary() if profile else ""
        prompt = build_itinerary_prompt(build_brief(state, profile), profile_hints=hints)

        raw = self.gateway.generate_json(prompt, StructuredItinerary, step="itinerary")
        logger.info("Itinerary generated chars=%d", len(raw or ""))
        return GenerationResult(text=self._normalize(raw), prompt=prompt, raw_text=raw)

    def _normalize(self, raw: str) -> str:
        parsed = parse_json_object(raw)
        if not parsed.ok:
            return raw
        try:
            doc = StructuredItinerary.model_validate(parsed.data)
        except ValidationError as e:
            # Content checks downstream report what is missing; keep the model's document as-is.
            logger.info("Itinerary does not match schema errors=%d", e.error_count())
            return json.dumps(parsed.data, ensure_ascii=False)
        return doc.model_dump_json(by_alias=True, exclude_none=True)
