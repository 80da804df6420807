# Role: Template-only personalization of the next question. No model calls, no state mutation.
# Gated by a weighted profile-completeness score; returns the adjusted text plus metadata for the client.

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from trip_assistant.models.turn import PersonalizationMetadata
from trip_assistant.models.user_profile import UserProfile
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

COMPLETENESS_THRESHOLD = 0.1
METHOD = "template-based"

# Weighted presence of profile sections, normalized by the total weight.
_WEIGHTS = (
    ("country", 2),
    ("currency", 1),
    ("city", 1),
    ("travel_prefs", 2),
    ("activity_preferences", 3),
    ("behavior_profile", 1),
)
_MAX_SCORE = sum(w for _, w in _WEIGHTS)

_GREAT = re.compile(r"Great!")
_INDIA = {"IN", "INDIA"}
_US = {"US", "USA", "UNITED STATES"}


def profile_completeness(profile: Optional[UserProfile]) -> float:
    if profile is None:
        return 0.0
    present = {
        "country": bool(profile.locale and profile.locale.country),
        "currency": bool(profile.currency),
        "city": bool(profile.city),
        "travel_prefs": profile.travel_prefs is not None,
        "activity_preferences": profile.activity_preferences is not None,
        "behavior_profile": profile.behavior_profile is not None,
    }
    score = sum(weight for name, weight in _WEIGHTS if present[name])
    return score / _MAX_SCORE


def applied_categories(profile: UserProfile) -> List[str]:
    applied: List[str] = []
    if profile.locale and profile.locale.country:
        applied.append("cultural-context")
    if profile.currency:
        applied.append("currency-localization")
    if profile.travel_prefs is not None:
        applied.append("travel-preferences")
    if profile.activity_preferences is not None:
        applied.append("activity-matching")
    if profile.behavior_profile and profile.behavior_profile.planning_style:
        applied.append("communication-style")
    if profile.contextual_intelligence and profile.contextual_intelligence.crowd_tolerance is not None:
        applied.append("crowd-preferences")
    return applied


def personalize_text(text: str, profile: UserProfile) -> str:
    # 1) Nationality-flavored opening (only when the text contains "Great!"; the canonical slot questions
    #    never do, so for them only the currency and travel-class clauses apply)
    # 2) Currency clause for non-USD users
    # 3) Travel-class clause
    out = text

    country = profile.locale.country if profile.locale else None
    if country:
        code = country.strip().upper()
        if code in _INDIA:
            out = _GREAT.sub("Great! As a fellow Indian traveler,", out, count=1)
        elif code not in _US:
            out = _GREAT.sub(f"Great! From {country.strip()},", out, count=1)

    if profile.currency and profile.currency != "USD":
        out += f" (I'll consider costs in {profile.currency})"

    if profile.travel_class == "economy":
        out += " I'll focus on budget-friendly options."
    elif profile.travel_class in {"business", "first"}:
        out += " I'll include premium experiences."

    return out


class PersonalizationOverlay:
    def __init__(self, threshold: float = COMPLETENESS_THRESHOLD) -> None:
        self.threshold = threshold

    def apply(self, text: Optional[str], profile: Optional[UserProfile]) -> Tuple[Optional[str], PersonalizationMetadata]:
        completeness = profile_completeness(profile)

        if profile is None or completeness <= self.threshold:
            return text, PersonalizationMetadata(
                applied=False,
                profile_completeness=completeness,
                method=METHOD,
                reason="insufficient_profile_data",
            )

        if not text:
            return text, PersonalizationMetadata(
                applied=False,
                profile_completeness=completeness,
                method=METHOD,
                reason="no_response_to_personalize",
            )

        personalized = personalize_text(text, profile)
        categories = applied_categories(profile)
        logger.debug("Personalization applied completeness=%.2f categories=%s", completeness, categories)
        return personalized, PersonalizationMetadata(
            applied=True,
            profile_completeness=completeness,
            personalizations=categories,
            method=METHOD,
        )
