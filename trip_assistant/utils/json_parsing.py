# Role: Defensive JSON parsing for model output. Models sometimes wrap JSON in code fences or add prose,
# so parsing is tried in stages. Failure is an explicit ParseResult, never an exception.

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ParseResult:
    ok: bool
    data: Dict[str, Any] = field(default_factory=dict)
    method: str = "failed"
    error: Optional[str] = None

    @property
    def repaired(self) -> bool:
        return self.ok and self.method != "strict"


def strip_code_fences(text: str) -> str:
    # Role: remove markdown fences if the model wrapped JSON in them.
    if not text:
        return ""
    t = text.strip()

    if t.startswith("```"):
        t = re.sub(r"^\s*```(?:json)?\s*", "", t, flags=re.IGNORECASE)
        t = re.sub(r"\s*```\s*$", "", t)
    return t.strip()


def _as_object(value: Any, method: str) -> ParseResult:
    if isinstance(value, dict):
        return ParseResult(ok=True, data=value, method=method)
    return ParseResult(ok=False, method=method, error="top-level JSON value is not an object")


def parse_json_object(text: Optional[str]) -> ParseResult:
    # 1) strict json.loads
    # 2) strip code fences
    # 3) extract {...} substring as last attempt
    raw = (text or "").strip()
    if not raw:
        return ParseResult(ok=False, error="empty response")

    try:
        return _as_object(json.loads(raw), "strict")
    except json.JSONDecodeError:
        pass

    cleaned = strip_code_fences(raw)
    if cleaned != raw:
        try:
            return _as_object(json.loads(cleaned), "stripped_fences")
        except json.JSONDecodeError:
            pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            return _as_object(json.loads(cleaned[start : end + 1]), "extracted_braces")
        except json.JSONDecodeError as e:
            return ParseResult(ok=False, error=str(e))

    return ParseResult(ok=False, error="no JSON object found")
