# Role: Client-supplied traveller profile, rebuilt on every request and never persisted.
# Every field is optional; unknown keys, bad enum values and out-of-range scores degrade to None instead of raising.

from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

SCORE_MIN = 1
SCORE_MAX = 10

TRAVEL_CLASSES = ("economy", "premium_economy", "business", "first")


def clamp_score(value: Any, low: float = SCORE_MIN, high: float = SCORE_MAX) -> Optional[float]:
    # Scores arrive as numbers or numeric strings; anything else is treated as unset.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(min(max(value, low), high))


def _one_of(value: Any, allowed) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned if cleaned in allowed else None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Units(_Section):
    distance: Optional[str] = None
    temperature: Optional[str] = None
    weight: Optional[str] = None

    @field_validator("distance", mode="before")
    @classmethod
    def _distance(cls, value):
        return _one_of(value, ("km", "miles"))

    @field_validator("temperature", mode="before")
    @classmethod
    def _temperature(cls, value):
        return value.strip().upper() if isinstance(value, str) and value.strip().upper() in {"C", "F"} else None

    @field_validator("weight", mode="before")
    @classmethod
    def _weight(cls, value):
        return _one_of(value, ("kg", "lb"))


class Locale(_Section):
    country: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[str] = None
    date_format: Optional[str] = None
    units: Optional[Units] = None

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, value):
        return value.strip().upper() if isinstance(value, str) and value.strip() else None


class Address(_Section):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class TravelPrefs(_Section):
    travel_class: Optional[str] = None
    dietary: Optional[str] = None
    accessibility: Optional[str] = None
    favorites: Optional[str] = None

    @field_validator("travel_class", mode="before")
    @classmethod
    def _travel_class(cls, value):
        # "Premium Economy" and "premium-economy" both map to premium_economy
        if isinstance(value, str):
            value = value.strip().replace(" ", "_").replace("-", "_")
        return _one_of(value, TRAVEL_CLASSES)


class Notifications(_Section):
    email: Optional[bool] = None
    push: Optional[bool] = None
    price: Optional[bool] = None
    marketing: Optional[bool] = None
    travel: Optional[bool] = None
    security: Optional[bool] = None

    @field_validator("*", mode="before")
    @classmethod
    def _bool_or_none(cls, value):
        return value if isinstance(value, bool) else None


class BehaviorProfile(_Section):
    planning_style: Optional[str] = None
    decision_speed: Optional[str] = None
    research_depth: Optional[str] = None
    booking_timing: Optional[str] = None
    change_tolerance: Optional[str] = None
    group_dynamics: Optional[str] = None

    @field_validator("planning_style", mode="before")
    @classmethod
    def _planning_style(cls, value):
        return _one_of(value, ("detailed", "flexible", "spontaneous"))

    @field_validator("decision_speed", mode="before")
    @classmethod
    def _decision_speed(cls, value):
        return _one_of(value, ("quick", "moderate", "thorough"))

    @field_validator("research_depth", mode="before")
    @classmethod
    def _research_depth(cls, value):
        return _one_of(value, ("minimal", "moderate", "extensive"))

    @field_validator("booking_timing", mode="before")
    @classmethod
    def _booking_timing(cls, value):
        return _one_of(value, ("early", "last-minute", "flexible"))

    @field_validator("change_tolerance", mode="before")
    @classmethod
    def _change_tolerance(cls, value):
        return _one_of(value, ("low", "medium", "high"))

    @field_validator("group_dynamics", mode="before")
    @classmethod
    def _group_dynamics(cls, value):
        return _one_of(value, ("leader", "follower", "collaborative"))


class ActivityPreferences(_Section):
    adventure_level: Optional[float] = None
    cultural_interest: Optional[float] = None
    nature_lover: Optional[float] = None
    nightlife_interest: Optional[float] = None
    shopping_interest: Optional[float] = None
    food_exploration: Optional[float] = None
    photography_interest: Optional[float] = None
    wellness_focus: Optional[float] = None
    historical_sites: Optional[float] = None
    local_experiences: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _clamp(cls, value):
        return clamp_score(value)

    def scored(self) -> Dict[str, float]:
        return {name: score for name, score in self.model_dump().items() if score is not None}


class BudgetRange(_Section):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: Optional[str] = None

    @field_validator("min", "max", mode="before")
    @classmethod
    def _number(cls, value):
        return clamp_score(value, 0, float("inf"))


class TimeConstraints(_Section):
    max_travel_time: Optional[float] = None
    preferred_departure_times: List[str] = []
    blackout_dates: List[str] = []

    @field_validator("max_travel_time", mode="before")
    @classmethod
    def _hours(cls, value):
        return clamp_score(value, 0, float("inf"))

    @field_validator("preferred_departure_times", "blackout_dates", mode="before")
    @classmethod
    def _strings(cls, value):
        return _string_list(value)


class TravelConstraints(_Section):
    budget_range: Optional[BudgetRange] = None
    time_constraints: Optional[TimeConstraints] = None
    physical_limitations: List[str] = []
    visa_restrictions: List[str] = []

    @field_validator("physical_limitations", "visa_restrictions", mode="before")
    @classmethod
    def _strings(cls, value):
        return _string_list(value)


class WeatherSensitivity(_Section):
    heat_tolerance: Optional[float] = None
    cold_tolerance: Optional[float] = None
    rain_preference: Optional[str] = None

    @field_validator("heat_tolerance", "cold_tolerance", mode="before")
    @classmethod
    def _clamp(cls, value):
        return clamp_score(value)

    @field_validator("rain_preference", mode="before")
    @classmethod
    def _rain(cls, value):
        return _one_of(value, ("avoid", "neutral", "enjoy"))


class ContextualIntelligence(_Section):
    weather_sensitivity: Optional[WeatherSensitivity] = None
    crowd_tolerance: Optional[float] = None
    language_comfort: List[str] = []
    sustainability_priority: Optional[float] = None

    @field_validator("crowd_tolerance", "sustainability_priority", mode="before")
    @classmethod
    def _clamp(cls, value):
        return clamp_score(value)

    @field_validator("language_comfort", mode="before")
    @classmethod
    def _strings(cls, value):
        return _string_list(value)


class PersonalityInsights(_Section):
    personality_type: Optional[str] = None
    learning_style: Optional[str] = None
    stress_triggers: List[str] = []
    motivation_drivers: List[str] = []
    decision_factors: List[str] = []
    travel_philosophy: Optional[str] = None

    @field_validator("learning_style", mode="before")
    @classmethod
    def _learning_style(cls, value):
        return _one_of(value, ("visual", "auditory", "kinesthetic"))

    @field_validator("travel_philosophy", mode="before")
    @classmethod
    def _philosophy(cls, value):
        return _one_of(value, ("bucket-list", "spontaneous", "educational", "relaxation"))

    @field_validator("stress_triggers", "motivation_drivers", "decision_factors", mode="before")
    @classmethod
    def _strings(cls, value):
        return _string_list(value)


class AILearningData(_Section):
    past_interactions: Dict[str, List[str]] = {}
    personalization_scores: Dict[str, float] = {}
    conversation_style: Optional[str] = None

    @field_validator("past_interactions", mode="before")
    @classmethod
    def _interactions(cls, value):
        if not isinstance(value, dict):
            return {}
        return {str(k): _string_list(v) for k, v in value.items()}

    @field_validator("personalization_scores", mode="before")
    @classmethod
    def _unit_scores(cls, value):
        if not isinstance(value, dict):
            return {}
        out = {}
        for key, raw in value.items():
            score = clamp_score(raw, 0, 1)
            if score is not None:
                out[str(key)] = score
        return out

    @field_validator("conversation_style", mode="before")
    @classmethod
    def _style(cls, value):
        return _one_of(value, ("casual", "formal", "detailed", "brief"))


# Flat client keys whose values are JSON-encoded sections.
_FLAT_JSON_SECTIONS = {
    "user_address": "address",
    "user_travel_prefs": "travel_prefs",
    "user_notif": "notifications",
}


def _decode_json(key: str, value: Any) -> Optional[Any]:
    # Client storage holds JSON strings; tolerate already-decoded values.
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Skipping malformed profile entry key=%s", key)
        return None


class UserProfile(_Section):
    locale: Optional[Locale] = None
    address: Optional[Address] = None
    travel_prefs: Optional[TravelPrefs] = None
    notifications: Optional[Notifications] = None
    behavior_profile: Optional[BehaviorProfile] = None
    activity_preferences: Optional[ActivityPreferences] = None
    travel_constraints: Optional[TravelConstraints] = None
    contextual_intelligence: Optional[ContextualIntelligence] = None
    personality_insights: Optional[PersonalityInsights] = None
    ai_learning_data: Optional[AILearningData] = None

    @classmethod
    def from_blob(cls, blob: Any) -> "UserProfile":
        """
        Build a profile from either a nested profile object or the flat key-value blob the client keeps
        in local storage (user_country, user_prefs, user_address, ...). Never raises: malformed sections
        are logged and skipped.
        """
        if isinstance(blob, UserProfile):
            return blob
        if isinstance(blob, str):
            blob = _decode_json("profile", blob)
        if not isinstance(blob, dict) or not blob:
            return cls()

        nested: Dict[str, Any] = {}

        # 1) Nested sections passed straight through (camelCase or snake_case)
        for name, info in cls.model_fields.items():
            for key in (name, info.alias):
                if key in blob:
                    decoded = _decode_json(key, blob[key])
                    if isinstance(decoded, dict):
                        nested[name] = decoded
                    break

        # 2) Flat locale keys
        locale: Dict[str, Any] = dict(nested.get("locale") or {})
        if isinstance(blob.get("user_country"), str):
            locale.setdefault("country", blob["user_country"])
        if isinstance(blob.get("user_timezone"), str):
            locale.setdefault("timezone", blob["user_timezone"])
        if "user_prefs" in blob:
            prefs = _decode_json("user_prefs", blob["user_prefs"])
            if isinstance(prefs, dict):
                locale.setdefault("currency", prefs.get("currency"))
                locale.setdefault("dateFormat", prefs.get("dateFormat"))
        if "user_units" in blob:
            units = _decode_json("user_units", blob["user_units"])
            if isinstance(units, dict):
                locale.setdefault("units", units)
        if locale:
            nested["locale"] = locale

        # 3) Flat JSON-encoded sections
        for key, section in _FLAT_JSON_SECTIONS.items():
            if key in blob and section not in nested:
                decoded = _decode_json(key, blob[key])
                if isinstance(decoded, dict):
                    nested[section] = decoded

        if isinstance(blob.get("user_city"), str) and blob["user_city"].strip():
            address = dict(nested.get("address") or {})
            address.setdefault("city", blob["user_city"].strip())
            nested["address"] = address

        # 4) Validate section by section so one bad section does not drop the rest
        sections: Dict[str, Any] = {}
        for name, data in nested.items():
            annotation = cls.model_fields[name].annotation
            section_cls = next(a for a in annotation.__args__ if a is not type(None))
            try:
                sections[name] = section_cls.model_validate(data)
            except ValidationError as e:
                logger.warning("Skipping invalid profile section=%s errors=%d", name, e.error_count())
        return cls(**sections)

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)

    def string_fields(self) -> Dict[str, str]:
        # Every free-text value the client supplied, keyed by dotted path ("address.city", "locale.country").
        out: Dict[str, str] = {}

        def walk(prefix: str, value: Any) -> None:
            if isinstance(value, str):
                if value:
                    out[prefix] = value
            elif isinstance(value, dict):
                for key, item in value.items():
                    walk(f"{prefix}.{key}" if prefix else str(key), item)
            elif isinstance(value, list):
                for i, item in enumerate(value):
                    walk(f"{prefix}[{i}]", item)

        walk("", self.model_dump(exclude_none=True))
        return out

    @property
    def country(self) -> Optional[str]:
        if self.locale and self.locale.country:
            return self.locale.country
        if self.address and self.address.country:
            return self.address.country
        return None

    @property
    def currency(self) -> Optional[str]:
        return self.locale.currency if self.locale else None

    @property
    def city(self) -> Optional[str]:
        return self.address.city if self.address else None

    @property
    def travel_class(self) -> Optional[str]:
        return self.travel_prefs.travel_class if self.travel_prefs else None

    def personalization_summary(self) -> str:
        # Role: short hint text for prompts. Only facts the client actually supplied.
        hints: List[str] = []

        if self.country:
            hints.append(f"User is from {self.country}")
        if self.city:
            state = self.address.state if self.address else None
            hints.append(f"Currently located in {self.city}" + (f", {state}" if state else ""))
        if self.currency:
            hints.append(f"Prefers {self.currency} currency for pricing")
        if self.travel_class:
            hints.append(f"Usually travels {self.travel_class} class")
        if self.travel_prefs and self.travel_prefs.dietary:
            hints.append(f"Dietary preference: {self.travel_prefs.dietary}")

        if self.activity_preferences:
            labels = {
                "adventure_level": "adventure activities",
                "cultural_interest": "cultural experiences",
                "nature_lover": "nature and outdoor activities",
                "food_exploration": "food exploration",
                "historical_sites": "historical sites",
            }
            scores = self.activity_preferences.scored()
            high = [label for name, label in labels.items() if scores.get(name, 0) >= 7]
            if high:
                hints.append("High interest in: " + ", ".join(high))

        if self.behavior_profile and self.behavior_profile.planning_style:
            hints.append(f"Planning style: {self.behavior_profile.planning_style}")

        ci = self.contextual_intelligence
        if ci and ci.crowd_tolerance is not None:
            if ci.crowd_tolerance <= 3:
                hints.append("Prefers less crowded locations")
            elif ci.crowd_tolerance >= 8:
                hints.append("Comfortable with crowded tourist spots")

        if ci and ci.weather_sensitivity:
            weather = ci.weather_sensitivity
            if weather.heat_tolerance is not None and weather.heat_tolerance <= 3:
                hints.append("Sensitive to hot weather")
            if weather.cold_tolerance is not None and weather.cold_tolerance <= 3:
                hints.append("Sensitive to cold weather")
            if weather.rain_preference == "avoid":
                hints.append("Prefers to avoid rainy destinations")

        return ". ".join(hints) + ("." if hints else "")
