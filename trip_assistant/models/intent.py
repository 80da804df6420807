# Role: Closed label sets for the two intent gates: the first-turn LLM classifier and the regex filler detector.

from enum import Enum


class Intent(str, Enum):
    TRAVEL = "travel"
    GREETING = "greeting"
    OTHER = "other"


class TrivialIntent(str, Enum):
    GREETING = "greeting"
    THANKS = "thanks"
    GOODBYE = "goodbye"
    NONE = "none"
