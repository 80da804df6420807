# Role: Slot-extraction prompt. Persona + guardrails + field enumeration + few-shot examples + rolling history
# + profile hints + what is already known. The model returns one value per field, null when absent.

from __future__ import annotations

import json
from typing import Dict, List, Optional

from trip_assistant.models.clarification import ClarificationState
from trip_assistant.prompts.system_prompt import build_system_prompt

FIELD_GUIDE = {
    "destination": "where the user wants to go (city, region or country)",
    "source": "where the trip starts from",
    "travelDates": "dates or timing as the user said it (e.g. 'next March', '10-15 June')",
    "startDate": "ISO YYYY-MM-DD start date, only if explicit",
    "endDate": "ISO YYYY-MM-DD end date, only if explicit",
    "duration": "trip length as text, e.g. '5 days'",
    "groupType": "one of: solo, couple, family, friends",
    "budget": "budget as the user said it, e.g. '2000 USD', 'mid-range'",
    "domesticOrInternational": "one of: domestic, international",
    "modeOfTransport": "one of: own car, rental car, taxi, train, bus, flight",
    "carModel": "car model if driving",
    "flightPreferences": "airline, class or stop preferences",
    "accommodation": "hotel / hostel / villa preferences",
    "travelPace": "relaxed / balanced / packed",
    "occasion": "honeymoon, anniversary, birthday, ...",
    "foodPreference": "vegetarian, vegan, local cuisine, ...",
    "specialNeeds": "accessibility or medical needs",
    "climatePreference": "warm, cold, dry, ...",
    "interests": "list of interests, e.g. ['beaches', 'food']",
    "tripTheme": "adventure, culture, relaxation, ...",
    "flexibleBudget": "true only if the user says the budget is flexible / open",
    "flexibleDates": "true only if the user says the dates are flexible / open",
}

_EXAMPLES = (
    (
        "Goa for 5 days, couple, budget flexible",
        {"destination": "Goa", "duration": "5 days", "groupType": "couple", "flexibleBudget": True},
    ),
    (
        "Me and my friends want to drive to the mountains in December, around 800 dollars each",
        {
            "destination": "the mountains",
            "groupType": "friends",
            "travelDates": "December",
            "modeOfTransport": "own car",
            "budget": "800 USD per person",
        },
    ),
    ("sometime in spring, we're flexible", {"travelDates": "spring", "flexibleDates": True}),
)


def _example_block() -> str:
    lines = []
    for text, values in _EXAMPLES:
        full = {name: None for name in FIELD_GUIDE}
        full["interests"] = []
        full["flexibleBudget"] = False
        full["flexibleDates"] = False
        full.update(values)
        lines.append(f"User: {text}\nOutput: {json.dumps(full, ensure_ascii=False)}")
    return "\n\n".join(lines)


def build_extraction_prompt(
    user_message: str,
    state: ClarificationState,
    recent_messages: Optional[List[Dict[str, str]]] = None,
    profile_hints: str = "",
) -> str:
    # Step 1: rolling history (already bounded by the caller).
    history_block = ""
    if recent_messages:
        formatted = "\n".join(f'{m["role"]}: {m["content"]}' for m in recent_messages)
        history_block = f"\n\nRecent conversation:\n{formatted}"

    # Step 2: what is already known, so the model does not re-ask or overwrite with guesses.
    known = {k: v for k, v in state.to_wire().items() if k not in {"inputHistory", "isPlanReady"} and v not in (None, "", [], False)}
    known_block = f"\n\nAlready known about this trip:\n{json.dumps(known, ensure_ascii=False)}" if known else ""

    profile_block = f"\n\nTraveller profile hints (context only, do not copy into fields):\n{profile_hints}" if profile_hints else ""

    fields = "\n".join(f"- {name}: {desc}" for name, desc in FIELD_GUIDE.items())

    return f"""
{build_system_prompt()}

ROLE:
You are a STRICT slot-extraction component. Extract trip details from the LATEST user message only.
You must NOT answer the user.

Fields:
{fields}

Rules:
1) Return every field. Use null (not the string "null") when the message does not state it.
2) Never guess or fill a field from the profile hints or from what is already known.
3) interests is a list; use [] when none are mentioned.
4) flexibleBudget / flexibleDates are true only when the user says so.

HARD OUTPUT CONTRACT:
- Output EXACTLY one raw JSON object with the fields above. No markdown, no code fences, no extra text.

Examples:
{_example_block()}{history_block}{profile_block}{known_block}

Latest user message:
{json.dumps(user_message, ensure_ascii=False)}
""".strip()
