import pytest

from trip_assistant.core.personalization import (
    PersonalizationOverlay,
    applied_categories,
    personalize_text,
    profile_completeness,
)
from trip_assistant.models.user_profile import UserProfile


def make_profile(country=None, currency=None, travel_class=None, city=None):
    blob = {}
    if country:
        blob["user_country"] = country
    if currency:
        blob["user_prefs"] = {"currency": currency}
    if travel_class:
        blob["user_travel_prefs"] = {"travelClass": travel_class}
    if city:
        blob["user_city"] = city
    return UserProfile.from_blob(blob)


def test_completeness_is_weighted():
    assert profile_completeness(None) == 0.0
    assert profile_completeness(UserProfile()) == 0.0
    assert profile_completeness(make_profile(country="FR", currency="EUR")) == pytest.approx(0.3)
    assert profile_completeness(make_profile(country="FR", currency="EUR", travel_class="economy")) == pytest.approx(0.5)


def test_city_alone_is_not_enough():
    text, meta = PersonalizationOverlay().apply("Great! Where to?", make_profile(city="Pune"))
    assert text == "Great! Where to?"
    assert meta.applied is False
    assert meta.reason == "insufficient_profile_data"


@pytest.mark.parametrize(
    "country, expected",
    [
        ("IN", "Great! As a fellow Indian traveler, where to?"),
        ("india", "Great! As a fellow Indian traveler, where to?"),
        ("France", "Great! From France, where to?"),
        ("US", "Great! where to?"),
    ],
)
def test_opening_follows_home_country(country, expected):
    assert personalize_text("Great! where to?", make_profile(country=country)) == expected


def test_opening_only_replaces_great():
    assert personalize_text("Where would you like to travel?", make_profile(country="IN")) == (
        "Where would you like to travel?"
    )


def test_currency_clause_skips_usd():
    assert personalize_text("When?", make_profile(currency="eur")) == "When? (I'll consider costs in EUR)"
    assert personalize_text("When?", make_profile(currency="USD")) == "When?"


@pytest.mark.parametrize(
    "travel_class, suffix",
    [
        ("economy", " I'll focus on budget-friendly options."),
        ("business", " I'll include premium experiences."),
        ("first", " I'll include premium experiences."),
        ("premium economy", ""),
    ],
)
def test_travel_class_clause(travel_class, suffix):
    assert personalize_text("When?", make_profile(travel_class=travel_class)) == "When?" + suffix


def test_metadata_lists_categories():
    profile = make_profile(country="IN", currency="INR", travel_class="economy")
    text, meta = PersonalizationOverlay().apply("What's your approximate budget for this trip?", profile)
    assert text.endswith("(I'll consider costs in INR) I'll focus on budget-friendly options.")
    assert meta.applied is True
    assert meta.method == "template-based"
    assert meta.personalizations == ["cultural-context", "currency-localization", "travel-preferences"]
    assert meta.personalizations == applied_categories(profile)


def test_nothing_to_personalize():
    text, meta = PersonalizationOverlay().apply(None, make_profile(country="IN", currency="INR"))
    assert text is None
    assert meta.applied is False
    assert meta.reason == "no_response_to_personalize"


def test_canonical_questions_get_clauses_but_no_opening():
    profile = make_profile(country="IN", currency="INR")
    text, meta = PersonalizationOverlay().apply("When would you like to travel?", profile)
    assert text == "When would you like to travel? (I'll consider costs in INR)"
    assert meta.applied is True
