# Role: Read-only diagnostics for the model gateway (key configured, throttle, rate-limit streak).
# Never makes a model call.

from typing import Any, Dict

from fastapi import APIRouter, Depends

from trip_assistant.api.deps import get_orchestrator
from trip_assistant.core.orchestrator import DialogueOrchestrator

router = APIRouter(tags=["quota"])


@router.get("/quota/status")
def quota_status(orchestrator: DialogueOrchestrator = Depends(get_orchestrator)) -> Dict[str, Any]:
    return orchestrator.gateway.status().as_dict()
