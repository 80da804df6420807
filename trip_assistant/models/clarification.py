# Role: Canonical trip-planning state passed by value on every turn. apply_updates() safely merges fields
# extracted by the LLM; input_history is append-only and never touched by the merge.

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class GroupType(str, Enum):
    SOLO = "solo"
    COUPLE = "couple"
    FAMILY = "family"
    FRIENDS = "friends"


class TripScope(str, Enum):
    DOMESTIC = "domestic"
    INTERNATIONAL = "international"


class TransportMode(str, Enum):
    OWN_CAR = "own car"
    RENTAL_CAR = "rental car"
    TAXI = "taxi"
    TRAIN = "train"
    BUS = "bus"
    FLIGHT = "flight"


_GROUP_SYNONYMS = {
    "solo": GroupType.SOLO,
    "alone": GroupType.SOLO,
    "myself": GroupType.SOLO,
    "single": GroupType.SOLO,
    "just me": GroupType.SOLO,
    "couple": GroupType.COUPLE,
    "partner": GroupType.COUPLE,
    "spouse": GroupType.COUPLE,
    "wife": GroupType.COUPLE,
    "husband": GroupType.COUPLE,
    "girlfriend": GroupType.COUPLE,
    "boyfriend": GroupType.COUPLE,
    "honeymoon": GroupType.COUPLE,
    "family": GroupType.FAMILY,
    "kids": GroupType.FAMILY,
    "children": GroupType.FAMILY,
    "parents": GroupType.FAMILY,
    "friends": GroupType.FRIENDS,
    "friend": GroupType.FRIENDS,
    "group": GroupType.FRIENDS,
    "buddies": GroupType.FRIENDS,
}

_TRANSPORT_SYNONYMS = {
    "own car": TransportMode.OWN_CAR,
    "my car": TransportMode.OWN_CAR,
    "own vehicle": TransportMode.OWN_CAR,
    "drive": TransportMode.OWN_CAR,
    "driving": TransportMode.OWN_CAR,
    "road trip": TransportMode.OWN_CAR,
    "rental car": TransportMode.RENTAL_CAR,
    "rental": TransportMode.RENTAL_CAR,
    "rent a car": TransportMode.RENTAL_CAR,
    "car rental": TransportMode.RENTAL_CAR,
    "taxi": TransportMode.TAXI,
    "cab": TransportMode.TAXI,
    "train": TransportMode.TRAIN,
    "rail": TransportMode.TRAIN,
    "bus": TransportMode.BUS,
    "coach": TransportMode.BUS,
    "flight": TransportMode.FLIGHT,
    "fly": TransportMode.FLIGHT,
    "plane": TransportMode.FLIGHT,
    "air": TransportMode.FLIGHT,
}

_SCOPE_SYNONYMS = {
    "domestic": TripScope.DOMESTIC,
    "local": TripScope.DOMESTIC,
    "international": TripScope.INTERNATIONAL,
    "abroad": TripScope.INTERNATIONAL,
    "overseas": TripScope.INTERNATIONAL,
}

# Canonical slot order; also the order in which string fields are scanned.
STRING_SLOTS = (
    "destination",
    "source",
    "travel_dates",
    "start_date",
    "end_date",
    "duration",
    "budget",
    "car_model",
    "flight_preferences",
    "accommodation",
    "travel_pace",
    "occasion",
    "food_preference",
    "special_needs",
    "climate_preference",
    "trip_theme",
)

ENUM_SLOTS = ("group_type", "domestic_or_international", "mode_of_transport")

_FLAG_FIELDS = ("flexible_budget", "flexible_dates")

# Never writable from an extraction payload.
_PROTECTED_FIELDS = {"input_history", "is_plan_ready"}

_TRUTHY = {"true", "yes", "y", "1", "flexible"}

SLOT_FIELDS = STRING_SLOTS + ENUM_SLOTS + ("interests",)


def to_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def normalize_group_type(value: Any) -> Optional[GroupType]:
    if isinstance(value, GroupType):
        return value
    if not isinstance(value, str):
        return None
    return _GROUP_SYNONYMS.get(value.strip().lower())


def normalize_transport_mode(value: Any) -> Optional[TransportMode]:
    if isinstance(value, TransportMode):
        return value
    if not isinstance(value, str):
        return None
    return _TRANSPORT_SYNONYMS.get(value.strip().lower())


def normalize_trip_scope(value: Any) -> Optional[TripScope]:
    if isinstance(value, TripScope):
        return value
    if not isinstance(value, str):
        return None
    return _SCOPE_SYNONYMS.get(value.strip().lower())


_NORMALIZERS = {
    "group_type": normalize_group_type,
    "mode_of_transport": normalize_transport_mode,
    "domestic_or_international": normalize_trip_scope,
}


def is_meaningful(value: Any) -> bool:
    """True when an extracted value may overwrite state: non-null, non-empty, not the string "null"."""
    if value is None:
        return False
    if isinstance(value, str):
        cleaned = value.strip()
        return bool(cleaned) and cleaned.lower() != "null"
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


class ClarificationState(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    destination: Optional[str] = None
    source: Optional[str] = None
    travel_dates: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration: Optional[str] = None
    group_type: Optional[GroupType] = None
    budget: Optional[str] = None
    domestic_or_international: Optional[TripScope] = None
    mode_of_transport: Optional[TransportMode] = None
    car_model: Optional[str] = None
    flight_preferences: Optional[str] = None
    accommodation: Optional[str] = None
    travel_pace: Optional[str] = None
    occasion: Optional[str] = None
    food_preference: Optional[str] = None
    special_needs: Optional[str] = None
    climate_preference: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    trip_theme: Optional[str] = None
    flexible_budget: bool = False
    flexible_dates: bool = False

    input_history: List[str] = Field(default_factory=list)
    is_plan_ready: bool = False

    # Boundary normalization: clients send arbitrary casing ("Couple") or empty strings for unset enums.
    @field_validator("group_type", mode="before")
    @classmethod
    def _coerce_group_type(cls, value: Any) -> Optional[GroupType]:
        return normalize_group_type(value)

    @field_validator("mode_of_transport", mode="before")
    @classmethod
    def _coerce_transport(cls, value: Any) -> Optional[TransportMode]:
        return normalize_transport_mode(value)

    @field_validator("domestic_or_international", mode="before")
    @classmethod
    def _coerce_scope(cls, value: Any) -> Optional[TripScope]:
        return normalize_trip_scope(value)

    @field_validator("interests", "input_history", mode="before")
    @classmethod
    def _coerce_string_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, str)]

    @field_validator("flexible_budget", "flexible_dates", "is_plan_ready", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return to_flag(value)

    def apply_updates(self, updates: Dict[str, Any]) -> List[str]:
        # 1) Ignore empty payloads and protected keys (history, readiness)
        # 2) Overwrite only with meaningful values (non-null, non-empty, not "null")
        # 3) Normalize closed enums; drop unknown enum values instead of storing them
        # 4) Merge interests as an order-preserving union
        # Returns the list of field names that changed.
        if not updates:
            return []

        changed: List[str] = []
        for raw_key, value in updates.items():
            field = self._field_name(raw_key)
            if field is None or field in _PROTECTED_FIELDS:
                continue

            if field in _FLAG_FIELDS:
                # Key line: flexibility only latches on; a default false never clears it.
                if to_flag(value) and not getattr(self, field):
                    setattr(self, field, True)
                    changed.append(field)
                continue

            if not is_meaningful(value):
                continue

            if field == "interests":
                if self._merge_interests(value):
                    changed.append(field)
                continue

            if field in _NORMALIZERS:
                normalized = _NORMALIZERS[field](value)
                if normalized is not None and normalized != getattr(self, field):
                    setattr(self, field, normalized)
                    changed.append(field)
                continue

            if field == "duration" and isinstance(value, (int, float)) and not isinstance(value, bool):
                value = f"{int(value)} days"

            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)

            if isinstance(value, str):
                cleaned = value.strip()
                if cleaned != getattr(self, field):
                    setattr(self, field, cleaned)
                    changed.append(field)

        return changed

    def append_input(self, text: str) -> None:
        self.input_history.append(text)

    def filled_slots(self) -> List[str]:
        # Flags, history and readiness are bookkeeping, not slots.
        return [name for name in SLOT_FIELDS if is_meaningful(self._as_text(getattr(self, name)))]

    def has_filled_slots(self) -> bool:
        return bool(self.filled_slots())

    def string_fields(self) -> Dict[str, str]:
        # Role: every string currently held in state (slots, interests, history), keyed for diagnostics.
        out: Dict[str, str] = {}
        for name in STRING_SLOTS:
            value = getattr(self, name)
            if isinstance(value, str) and value:
                out[name] = value
        for name in ENUM_SLOTS:
            value = getattr(self, name)
            if value is not None:
                out[name] = self._as_text(value) or ""
        for i, interest in enumerate(self.interests):
            out[f"interests[{i}]"] = interest
        for i, entry in enumerate(self.input_history):
            out[f"input_history[{i}]"] = entry
        return out

    def _merge_interests(self, value: Any) -> bool:
        if isinstance(value, str):
            items = [part for part in value.split(",")]
        elif isinstance(value, (list, tuple, set)):
            items = list(value)
        else:
            return False

        added = False
        existing = {i.lower() for i in self.interests}
        for item in items:
            if not isinstance(item, str):
                continue
            cleaned = item.strip()
            if not is_meaningful(cleaned) or cleaned.lower() in existing:
                continue
            self.interests.append(cleaned)
            existing.add(cleaned.lower())
            added = True
        return added

    @classmethod
    def _field_name(cls, key: Any) -> Optional[str]:
        if not isinstance(key, str):
            return None
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None

    @staticmethod
    def _as_text(value: Any) -> Optional[str]:
        if isinstance(value, Enum):
            return value.value
        return value

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
