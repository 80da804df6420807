# Role: Process-wide wiring for the HTTP layer. One orchestrator (and so one gateway / throttle) per process,
# built on first use so importing the app never needs an API key.

from __future__ import annotations

from functools import lru_cache

from trip_assistant.core.orchestrator import DialogueOrchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> DialogueOrchestrator:
    return DialogueOrchestrator()
