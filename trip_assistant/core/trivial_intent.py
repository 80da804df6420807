# Role: Pure regex detector for conversational filler (greeting / thanks / goodbye) so no model call is spent on it.
# A hit requires the WHOLE utterance to be filler: "hi there!" is trivial, "hi, plan Goa" is not.

from __future__ import annotations

import re

from trip_assistant.models.intent import TrivialIntent

CANNED_REPLIES = {
    TrivialIntent.GREETING: "Hello! How can I help you plan your next trip?",
    TrivialIntent.THANKS: "You're welcome! Let me know if you need any travel help.",
    TrivialIntent.GOODBYE: "Goodbye! Safe travels!",
}

# English, Spanish, French, German, Italian, Portuguese, Hindi, Hebrew, Japanese (romanized).
_GREETING_TERMS = (
    "hi", "hii", "hello", "hey", "heya", "hiya", "yo", "howdy", "greetings",
    "good morning", "good afternoon", "good evening", "whats up", "sup",
    "hola", "buenos dias", "buenas tardes", "buenas noches",
    "bonjour", "salut", "bonsoir",
    "hallo", "guten tag", "guten morgen", "servus", "moin",
    "ciao", "buongiorno", "buonasera",
    "ola", "oi", "bom dia", "boa tarde",
    "namaste", "namaskar",
    "shalom",
    "konnichiwa", "ohayo", "ohayou", "konbanwa",
)

_THANKS_TERMS = (
    "thanks", "thank you", "thx", "ty", "thank u", "many thanks", "cheers", "much appreciated",
    "gracias", "muchas gracias",
    "merci", "merci beaucoup",
    "danke", "danke schon", "vielen dank",
    "grazie", "grazie mille",
    "obrigado", "obrigada",
    "dhanyavad", "dhanyavaad", "shukriya",
    "toda", "toda raba",
    "arigato", "arigatou", "domo arigato",
)

_GOODBYE_TERMS = (
    "bye", "goodbye", "good bye", "bye bye", "see you", "see ya", "see you later", "later",
    "take care", "farewell", "good night", "gn",
    "adios", "hasta luego", "hasta pronto",
    "au revoir", "a bientot",
    "tschuss", "auf wiedersehen",
    "arrivederci",
    "tchau", "ate logo",
    "alvida", "phir milenge",
    "lehitraot",
    "sayonara", "mata ne",
)

# Words allowed around a filler term without making the utterance a real request.
_FILLER_WORDS = (
    "there", "so", "much", "a", "lot", "again", "all", "everyone", "friend", "buddy", "mate",
    "very", "you", "for", "now", "and", "ok", "okay", "oh", "well", "bot", "assistant", "ji",
)


def _alternation(terms) -> str:
    # Longest first so "thank you" wins over "thank".
    return "|".join(sorted((re.escape(t).replace(r"\ ", r"\s+") for t in terms), key=len, reverse=True))


_ANY_TERM = _alternation(_GREETING_TERMS + _THANKS_TERMS + _GOODBYE_TERMS + _FILLER_WORDS)


def _whole_utterance(terms) -> re.Pattern:
    # Leading filler, then a term of this category, then anything trivial.
    filler = _alternation(_FILLER_WORDS)
    return re.compile(rf"^(?:(?:{filler})\s+)*(?:{_alternation(terms)})(?:\s+(?:{_ANY_TERM}))*$")


_GREETING_RE = _whole_utterance(_GREETING_TERMS)
_THANKS_RE = _whole_utterance(_THANKS_TERMS)
_GOODBYE_RE = _whole_utterance(_GOODBYE_TERMS)

_PUNCT = re.compile(r"[^\w\s]", re.UNICODE)


def normalize(text: str) -> str:
    # Trim, lower-case, drop punctuation ("what's" -> "whats"), collapse whitespace.
    lowered = _PUNCT.sub("", (text or "").strip().lower())
    return re.sub(r"\s+", " ", lowered).strip()


def detect_trivial_intent(text: str) -> TrivialIntent:
    cleaned = normalize(text)
    if not cleaned:
        return TrivialIntent.NONE

    # Thanks before goodbye: "thanks bye" reads as gratitude.
    if _GREETING_RE.match(cleaned):
        return TrivialIntent.GREETING
    if _THANKS_RE.match(cleaned):
        return TrivialIntent.THANKS
    if _GOODBYE_RE.match(cleaned):
        return TrivialIntent.GOODBYE
    return TrivialIntent.NONE
