# Role: Deterministic "one question" builder. Maps the first missing slot (wire name, as reported by the
# planner) to a single user-facing question so the dialog stays step-by-step.

from __future__ import annotations

from typing import Optional

FALLBACK_QUESTION = "Could you share a few more details about your trip?"

SLOT_QUESTIONS = {
    "destination": "Where would you like to travel?",
    "groupType": "Who will be traveling with you? (solo, couple, family, or friends)",
    "budget": "What's your approximate budget for this trip?",
    "travelDates": "When would you like to travel?",
    "interests": "What are your main interests for this trip? (e.g., adventure, relaxation, culture, food)",
}


def next_question(slot: Optional[str]) -> str:
    if not slot:
        return FALLBACK_QUESTION
    return SLOT_QUESTIONS.get(slot, FALLBACK_QUESTION)

