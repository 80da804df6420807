# Role: Local developer CLI to drive DialogueOrchestrator without the web client.
# The state lives here, client-side, and is passed by value on every turn exactly like the HTTP client does.

from __future__ import annotations

import json

import trip_assistant.config
trip_assistant.config.load_env()

from trip_assistant.core.orchestrator import DialogueOrchestrator
from trip_assistant.models.clarification import ClarificationState
from trip_assistant.models.message import Message
from trip_assistant.models.turn import TurnRequest
from trip_assistant.utils.logger import refresh_level


def main() -> None:
    # 1) Create DialogueOrchestrator
    # 2) Keep state + recent messages across turns
    # 3) Route user input -> orchestrator -> print assistant output
    refresh_level()
    print("Trip Clarification Assistant CLI")
    print("Commands: /new (fresh trip), /state (show state), /plan (generate from current state), /exit")
    print("-" * 50)

    orchestrator = DialogueOrchestrator()
    state = ClarificationState()
    messages: list[Message] = []

    while True:
        try:
            user_message = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_message:
            continue

        cmd = user_message.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/new", "new"}:
            state = ClarificationState()
            messages = []
            print("Started a new trip.")
            continue

        if cmd in {"/state", "state"}:
            print(json.dumps(state.to_wire(), indent=2, ensure_ascii=False))
            continue

        # /plan sends an empty turn: the form path when slots are filled.
        text = "" if cmd == "/plan" else user_message
        result = orchestrator.handle_turn(
            TurnRequest(free_text_input=text, current_state=state, recent_messages=messages)
        )
        state = result.updated_state

        if text:
            messages.append(Message(role="user", content=text))
        if result.next_prompt:
            messages.append(Message(role="assistant", content=result.next_prompt))

        print(f"\nAssistant: {result.next_prompt}")


if __name__ == "__main__":
    main()
