"""AI Route — the single {action, payload} → {result} transport call.

Invariants:
    - POST /api/v1/ai only; body parsed into AIRequest
    - Success: 200 {"result": ...}; failure: non-2xx {"message": ...} via global handlers
    - Route contains no business logic (delegates to ActionDispatcher)
"""

from fastapi import APIRouter, Depends

from persona_ai.api.dependencies import get_action_dispatcher
from persona_ai.schemas.actions import AIRequest, AIResponse
from persona_ai.services.action_dispatch import ActionDispatcher

router = APIRouter(prefix="/api/v1/ai", tags=["ai"])


@router.post("", response_model=AIResponse)
async def run_action(
    body: AIRequest,
    dispatcher: ActionDispatcher = Depends(get_action_dispatcher),
):
    result = await dispatcher.dispatch(body.action, body.payload)
    return AIResponse(result=result)
