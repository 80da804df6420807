# Role: Small typed contract for the completeness planner. SlotPlan drives the orchestrator:
# ask for the first missing slot, or proceed to itinerary generation. Validator enforces action/missing agreement.

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, model_validator

PLAN_READY = "plan_ready"
ASK_PREFIX = "ask_"


class SlotPlan(BaseModel):
    missing_slots: List[str] = Field(default_factory=list)
    next_action: str = PLAN_READY

    @model_validator(mode="after")
    def _check_next_action(self):
        # plan_ready iff nothing is missing; otherwise ask for the first missing slot
        if not self.missing_slots and self.next_action != PLAN_READY:
            raise ValueError("next_action must be plan_ready when no slots are missing")

        if self.missing_slots and self.next_action != ASK_PREFIX + self.missing_slots[0]:
            raise ValueError("next_action must ask for the first missing slot")

        return self

    @property
    def is_ready(self) -> bool:
        return self.next_action == PLAN_READY

    @classmethod
    def from_missing(cls, missing_slots: List[str]) -> "SlotPlan":
        action = ASK_PREFIX + missing_slots[0] if missing_slots else PLAN_READY
        return cls(missing_slots=list(missing_slots), next_action=action)
