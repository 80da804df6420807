# Role: Thin HTTP adapter for the clarification turn. Parses the turn request and delegates the entire turn
# to DialogueOrchestrator (business logic lives in core, not in the API layer).

from typing import Any, Dict

from fastapi import APIRouter, Depends

from trip_assistant.api.deps import get_orchestrator
from trip_assistant.core.orchestrator import DialogueOrchestrator
from trip_assistant.models.turn import TurnRequest

router = APIRouter(tags=["clarify"])


@router.post("/clarify")
def clarify(req: TurnRequest, orchestrator: DialogueOrchestrator = Depends(get_orchestrator)) -> Dict[str, Any]:
    # 1) Forward the whole turn (input, state, history, profile) to the orchestrator
    # 2) Return the camelCase wire shape the client stores and sends back next turn
    return orchestrator.handle_turn(req).to_wire()
