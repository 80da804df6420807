# Role: Completeness gate. Pure function over the merged state: which required slots are still missing
# (canonical order) and what to do next. The orchestrator sets is_plan_ready from this and nothing else.

from __future__ import annotations

from typing import List

from trip_assistant.models.clarification import ClarificationState, is_meaningful
from trip_assistant.models.decision import SlotPlan
from trip_assistant.utils.clarification import next_question

# Canonical order (wire names), also the order questions are asked in.
REQUIRED_ORDER = ("destination", "groupType", "budget", "travelDates")


def _has(value) -> bool:
    return is_meaningful(value.value if hasattr(value, "value") else value)


def missing_slots(state: ClarificationState) -> List[str]:
    # 1) destination + groupType are always required
    # 2) budget unless flexible_budget
    # 3) travelDates unless flexible_dates, or both start_date and end_date are set
    # interests are tracked once present but never required to start planning.
    missing: List[str] = []

    if not _has(state.destination):
        missing.append("destination")

    if state.group_type is None:
        missing.append("groupType")

    if not state.flexible_budget and not _has(state.budget):
        missing.append("budget")

    # Key line: free-text dates and a structured start/end pair are equivalent.
    has_date_pair = _has(state.start_date) and _has(state.end_date)
    if not state.flexible_dates and not has_date_pair and not _has(state.travel_dates):
        missing.append("travelDates")

    return missing


def plan_slots(state: ClarificationState) -> SlotPlan:
    return SlotPlan.from_missing(missing_slots(state))


def question_for(plan: SlotPlan) -> str:
    return next_question(plan.missing_slots[0] if plan.missing_slots else None)
