# Role: Single chat message schema for the rolling history window handed to the extractor prompt.

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, field_validator

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    role: Role
    content: str

    @field_validator("role", mode="before")
    @classmethod
    def _lower_role(cls, value):
        return value.strip().lower() if isinstance(value, str) else value
