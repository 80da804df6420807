# Role: Per-turn request/response schemas for DialogueOrchestrator and the HTTP adapter.
# State travels by value: the caller sends currentState and gets updatedState back.

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from trip_assistant.models.clarification import ClarificationState
from trip_assistant.models.message import Message


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ThoughtStep(_Wire):
    # Diagnostics only; never read back for control flow.
    step: str
    prompt: str = ""
    response: str = ""


class TurnRequest(_Wire):
    free_text_input: str = ""
    current_state: ClarificationState = Field(default_factory=ClarificationState)
    recent_messages: List[Message] = Field(default_factory=list)
    user_profile: Optional[Dict[str, Any]] = None

    @field_validator("free_text_input", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("current_state", mode="before")
    @classmethod
    def _none_to_fresh_state(cls, value):
        return ClarificationState() if value is None else value

    @field_validator("recent_messages", mode="before")
    @classmethod
    def _drop_bad_messages(cls, value):
        # Malformed history entries are ignored rather than failing the whole turn.
        if not isinstance(value, list):
            return []
        return [
            m for m in value
            if isinstance(m, Message)
            or (isinstance(m, dict) and isinstance(m.get("content"), str)
                and str(m.get("role", "")).strip().lower() in {"user", "assistant", "system"})
        ]


class PersonalizationMetadata(_Wire):
    applied: bool = False
    profile_completeness: float = 0.0
    personalizations: List[str] = Field(default_factory=list)
    method: str = "template-based"
    reason: Optional[str] = None


class TurnResponse(_Wire):
    next_prompt: Optional[str] = None
    updated_state: ClarificationState
    thought_chain: List[ThoughtStep] = Field(default_factory=list)
    personalization_metadata: Optional[PersonalizationMetadata] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
