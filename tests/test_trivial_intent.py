import pytest

from trip_assistant.core.trivial_intent import CANNED_REPLIES, detect_trivial_intent
from trip_assistant.models.intent import TrivialIntent

cases = [
    ("hi", TrivialIntent.GREETING),
    ("Hello there!", TrivialIntent.GREETING),
    ("  HOLA  ", TrivialIntent.GREETING),
    ("Namaste ji", TrivialIntent.GREETING),
    ("konnichiwa", TrivialIntent.GREETING),
    ("thanks so much", TrivialIntent.THANKS),
    ("Thank you!", TrivialIntent.THANKS),
    ("Merci beaucoup", TrivialIntent.THANKS),
    ("arigato", TrivialIntent.THANKS),
    ("thanks, bye", TrivialIntent.THANKS),
    ("bye", TrivialIntent.GOODBYE),
    ("see you later", TrivialIntent.GOODBYE),
    ("Auf Wiedersehen", TrivialIntent.GOODBYE),
    ("hi, plan a trip to Goa", TrivialIntent.NONE),
    ("what's the weather today", TrivialIntent.NONE),
    ("thank you for the plan to Rome", TrivialIntent.NONE),
    ("history tour", TrivialIntent.NONE),
    ("", TrivialIntent.NONE),
]


@pytest.mark.parametrize("text, expected", cases)
def test_detect_trivial_intent(text, expected):
    assert detect_trivial_intent(text) == expected


def test_every_trivial_label_has_a_canned_reply():
    for intent in (TrivialIntent.GREETING, TrivialIntent.THANKS, TrivialIntent.GOODBYE):
        assert CANNED_REPLIES[intent]
    assert CANNED_REPLIES[TrivialIntent.GREETING] == "Hello! How can I help you plan your next trip?"
