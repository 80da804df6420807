# Role: First-turn gate prompt. Asks for exactly one label (travel / greeting / other) and nothing else.

from __future__ import annotations

import json

from trip_assistant.models.intent import Intent
from trip_assistant.prompts.system_prompt import build_system_prompt


def build_intent_prompt(user_message: str) -> str:
    labels = [i.value for i in Intent]

    return f"""
{build_system_prompt()}

ROLE:
You are a STRICT intent-classification component. You must NOT answer the user.

Allowed labels (choose exactly ONE):
{json.dumps(labels)}

Rules:
1) Anything about planning, booking or taking a trip (a place to visit, dates, budget, companions) -> "travel"
2) Pure small talk or a hello with no request -> "greeting"
3) Everything else (weather today, coding, math, news, general questions) -> "other"

HARD OUTPUT CONTRACT:
- Output EXACTLY one raw JSON object: {{"intent": "<label>"}}
- No markdown, no code fences, no extra text.

User message:
{json.dumps(user_message, ensure_ascii=False)}
""".strip()
