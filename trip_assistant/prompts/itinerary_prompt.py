# Role: Generation brief for the full itinerary. Lists every known trip detail plus locale hints and
# fixes the output contract (nested JSON, one entry per day).

from __future__ import annotations

from typing import List

from trip_assistant.prompts.system_prompt import build_system_prompt


def build_itinerary_prompt(brief_lines: List[str], profile_hints: str = "") -> str:
    brief = "\n".join(f"- {line}" for line in brief_lines) or "- (no details given)"
    hints = f"\n\nTraveller profile:\n{profile_hints}" if profile_hints else ""

    return f"""
{build_system_prompt()}

ROLE:
Create a complete, realistic day-by-day travel itinerary for this trip.

Trip details:
{brief}{hints}

Rules:
1) dailyItinerary has exactly one entry per trip day, numbered 1, 2, 3, ... in order.
2) Activities within a day are in chronological order with times like "09:00 AM".
3) tripOverview.duration states the number of days, e.g. "5 days".
4) Prices in the traveller's currency when known; budgetBreakdown covers accommodation, food, transport,
   activities and a total.
5) Keep the tone factual and practical. No marketing language, no markup.

HARD OUTPUT CONTRACT:
- Output ONLY the JSON object matching the provided schema.
""".strip()
