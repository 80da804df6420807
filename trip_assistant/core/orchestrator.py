# Role: Orchestrator for one conversation turn. State arrives by value and leaves by value; it glues together:
# security gate, filler gate, first-turn intent gate, slot extraction + merge, completeness planning,
# itinerary generation + output validation, and question personalization.
# This is the only place that turns errors into user-facing wording.

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from trip_assistant.core.errors import GatewayError, GatewayErrorKind
from trip_assistant.core.output_validator import OutputValidator
from trip_assistant.core.personalization import PersonalizationOverlay
from trip_assistant.core.security_filter import REFUSAL_MESSAGE, SecurityFilter
from trip_assistant.core.slot_planner import plan_slots, question_for
from trip_assistant.core.trivial_intent import CANNED_REPLIES, detect_trivial_intent
from trip_assistant.llm.intent_classifier import IntentClassifier
from trip_assistant.llm.itinerary_generator import ItineraryGenerator
from trip_assistant.llm.model_gateway import ModelGateway
from trip_assistant.llm.slot_extractor import SlotExtractor
from trip_assistant.models.clarification import ClarificationState, is_meaningful
from trip_assistant.models.intent import Intent, TrivialIntent
from trip_assistant.models.turn import PersonalizationMetadata, ThoughtStep, TurnRequest, TurnResponse
from trip_assistant.models.user_profile import UserProfile
from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

NON_TRAVEL_MESSAGE = "I can only help with planning trips. Tell me where you'd like to go and I'll get started!"
EMPTY_TURN_PROMPT = "Please tell me about your trip. Where would you like to go?"
GENERIC_ERROR_MESSAGE = "Something went wrong while planning your trip. Please try again."


class Branch(str, Enum):
    SECURITY_REFUSAL = "security_refusal"
    TRIVIAL = "trivial"
    NON_TRAVEL = "non_travel"
    QUESTION = "question"
    ITINERARY = "itinerary"
    FORM_ITINERARY = "form_itinerary"
    STATIC_PROMPT = "static_prompt"
    ERROR = "error"


class _Turn:
    # Mutable per-turn scratchpad: working state copy, thought chain, result.

    def __init__(self, state: ClarificationState) -> None:
        self.state = state
        self.thoughts: List[ThoughtStep] = []
        self.next_prompt: Optional[str] = None
        self.personalization: Optional[PersonalizationMetadata] = None
        self.branch: Branch = Branch.ERROR

    def think(self, step: str, prompt: str = "", response: str = "") -> None:
        self.thoughts.append(ThoughtStep(step=step, prompt=prompt, response=response))


class DialogueOrchestrator:
    def __init__(
        self,
        gateway: Optional[ModelGateway] = None,
        security_filter: Optional[SecurityFilter] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        slot_extractor: Optional[SlotExtractor] = None,
        itinerary_generator: Optional[ItineraryGenerator] = None,
        output_validator: Optional[OutputValidator] = None,
        personalization: Optional[PersonalizationOverlay] = None,
    ) -> None:
        # Key line: one gateway handle shared by every model-calling collaborator (one throttle per process).
        self.gateway = gateway or ModelGateway()
        self.security_filter = security_filter or SecurityFilter()
        self.intent_classifier = intent_classifier or IntentClassifier(self.gateway)
        self.slot_extractor = slot_extractor or SlotExtractor(self.gateway, self.security_filter)
        self.itinerary_generator = itinerary_generator or ItineraryGenerator(self.gateway)
        self.output_validator = output_validator or OutputValidator()
        self.personalization = personalization or PersonalizationOverlay()

    def handle_turn(self, request: TurnRequest) -> TurnResponse:
        # 0) Work on a copy; the caller's state object is never touched
        # 1) Security gate (input + every state string + every profile string)
        # 2) Filler gate (greeting / thanks / goodbye)
        # 3) First-turn intent gate
        # 4) Extract -> merge -> append history -> plan -> generate or ask
        # 5) Empty input: form path or static prompt
        turn = _Turn(request.current_state.model_copy(deep=True))
        text = (request.free_text_input or "").strip()
        profile = UserProfile.from_blob(request.user_profile)

        try:
            if text:
                self._handle_text(turn, text, request, profile)
            else:
                self._handle_empty(turn, profile)
        except GatewayError as e:
            turn.branch = Branch.ERROR
            turn.next_prompt = self._gateway_message(e)
            turn.think("error", response=f"{e.kind.value}")
        except Exception:
            logger.exception("Unhandled error during turn")
            turn.branch = Branch.ERROR
            turn.next_prompt = GENERIC_ERROR_MESSAGE
            turn.think("error", response="unexpected")

        # Key line: readiness always mirrors the planner, whatever branch ran.
        plan = plan_slots(turn.state)
        turn.state.is_plan_ready = plan.is_ready

        logger.info(
            "Turn done branch=%s filled=%d missing=%s history=%d",
            turn.branch.value,
            len(turn.state.filled_slots()),
            plan.missing_slots,
            len(turn.state.input_history),
        )
        return TurnResponse(
            next_prompt=turn.next_prompt,
            updated_state=turn.state,
            thought_chain=turn.thoughts,
            personalization_metadata=turn.personalization,
        )

    def _handle_text(self, turn: _Turn, text: str, request: TurnRequest, profile: UserProfile) -> None:
        state = turn.state

        verdict = self.security_filter.check_turn(text, state, profile)
        if verdict.blocked:
            turn.branch = Branch.SECURITY_REFUSAL
            turn.next_prompt = REFUSAL_MESSAGE
            turn.think("security", response=f"blocked field={verdict.field}")
            return

        trivial = detect_trivial_intent(text)
        if trivial != TrivialIntent.NONE:
            turn.branch = Branch.TRIVIAL
            turn.next_prompt = CANNED_REPLIES[trivial]
            turn.think("trivial_intent", response=trivial.value)
            return

        if not state.has_filled_slots():
            intent = self.intent_classifier.classify(text)
            turn.think("intent", prompt=intent.prompt, response=intent.raw_text)

            if intent.intent == Intent.GREETING:
                turn.branch = Branch.TRIVIAL
                turn.next_prompt = CANNED_REPLIES[TrivialIntent.GREETING]
                return
            if intent.intent != Intent.TRAVEL:
                turn.branch = Branch.NON_TRAVEL
                turn.next_prompt = NON_TRAVEL_MESSAGE
                return

        # After the gate: a profile-derived source must not count as a filled slot on the first turn.
        # The profile itself was screened by check_turn above.
        self._apply_source_fallback(state, profile)

        recent = self._recent_messages(request, state)
        extraction = self.slot_extractor.extract(text, state, recent_messages=recent, profile=profile)
        turn.think("extraction", prompt=extraction.prompt, response=extraction.raw_text)

        changed = state.apply_updates(extraction.updates)
        # Key line: exactly one history entry per turn that reaches extraction, parse failure or not.
        state.append_input(text)

        plan = plan_slots(state)
        turn.think("planner", response=f"{plan.next_action} missing={plan.missing_slots} changed={changed}")

        if plan.is_ready:
            turn.branch = Branch.ITINERARY
            self._generate(turn, profile)
            return

        turn.branch = Branch.QUESTION
        question = question_for(plan)
        turn.next_prompt, turn.personalization = self.personalization.apply(question, profile)

    def _handle_empty(self, turn: _Turn, profile: UserProfile) -> None:
        state = turn.state

        if not state.has_filled_slots():
            turn.branch = Branch.STATIC_PROMPT
            turn.next_prompt = EMPTY_TURN_PROMPT
            return

        # Form path: submissions skip extraction but are still untrusted, and so is the profile.
        field = self.security_filter.scan_untrusted(state, profile)
        if field:
            logger.warning("Security filter tripped on form submission field=%s", field)
            turn.branch = Branch.SECURITY_REFUSAL
            turn.next_prompt = REFUSAL_MESSAGE
            turn.think("security", response=f"blocked field={field}")
            return

        self._apply_source_fallback(state, profile)
        turn.branch = Branch.FORM_ITINERARY
        self._generate(turn, profile)

    def _generate(self, turn: _Turn, profile: UserProfile) -> None:
        generation = self.itinerary_generator.generate(turn.state, profile)
        turn.think("itinerary", prompt=generation.prompt, response=generation.raw_text)

        report = self.output_validator.validate(generation.text)
        turn.think(
            "validation",
            response=f"valid={report.is_valid} errors={len(report.errors)} warnings={len(report.warnings)}",
        )
        # Never blocking: the sanitized document goes out even when the report is invalid.
        turn.next_prompt = report.sanitized_output

    @staticmethod
    def _apply_source_fallback(state: ClarificationState, profile: UserProfile) -> None:
        if not is_meaningful(state.source) and profile.city:
            state.source = profile.city

    @staticmethod
    def _recent_messages(request: TurnRequest, state: ClarificationState) -> List[Dict[str, str]]:
        if request.recent_messages:
            return [{"role": m.role, "content": m.content} for m in request.recent_messages]
        return [{"role": "user", "content": entry} for entry in state.input_history]

    @staticmethod
    def _gateway_message(e: GatewayError) -> str:
        if e.kind == GatewayErrorKind.RATE_LIMITED and e.retry_after_seconds:
            return f"{e.user_message} (Suggested wait: about {e.retry_after_seconds:.0f} seconds.)"
        return e.user_message
