"""Action Dispatch — explicit routing from action name to payload model + handler.

Invariants:
    - Every action->handler mapping is visible (no getattr magic)
    - Unknown action raises UnknownActionError (400, never retried, no service call)
    - Payload validated against the action's model before any service call
    - No caching, persistence or throttling here; those belong to the caller

Design Decisions:
    - Explicit dict over getattr: adding an action requires editing this dict
    - Handlers split by concern (persona vs chat), instantiated once per dispatcher
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from persona_ai.core.errors import (
    ErrorContext,
    PayloadValidationError,
    UnknownActionError,
)
from persona_ai.schemas.actions import (
    ChangeSummaryPayload,
    CreationChatPayload,
    DocumentPayload,
    FullSummaryPayload,
    FullTonePayload,
    HelpChatPayload,
    NamePayload,
    ParamsPayload,
    PersonaChatPayload,
    PersonaStatePayload,
    SummaryTextPayload,
    TopicPayload,
)
from persona_ai.services.handle_chat import ChatHandlers
from persona_ai.services.handle_persona import PersonaHandlers
from persona_ai.services.recipe_runner import RecipeRunner

logger = logging.getLogger(__name__)

Handler = Callable[[Any, ErrorContext], Awaitable[Any]]


class ActionDispatcher:
    """Routes action name -> (payload model, handler)."""

    def __init__(self, runner: RecipeRunner):
        persona = PersonaHandlers(runner)
        chat = ChatHandlers(runner)

        self._actions: dict[str, tuple[type[BaseModel], Handler]] = {
            # Persona building (structured)
            "createPersonaFromWeb": (TopicPayload, persona.create_persona_from_web),
            "extractParamsFromDoc": (DocumentPayload, persona.extract_params_from_doc),
            "updateParamsFromSummary": (
                SummaryTextPayload, persona.update_params_from_summary,
            ),
            "generateMbtiProfile": (PersonaStatePayload, persona.generate_mbti_profile),

            # Free text
            "generateSummaryFromParams": (
                ParamsPayload, persona.generate_summary_from_params,
            ),
            "generateShortSummary": (FullSummaryPayload, persona.generate_short_summary),
            "generateShortTone": (FullTonePayload, persona.generate_short_tone),
            "generateChangeSummary": (
                ChangeSummaryPayload, persona.generate_change_summary,
            ),
            "translateNameToRomaji": (NamePayload, persona.translate_name_to_romaji),
            "generateRefinementWelcomeMessage": (
                PersonaStatePayload, chat.generate_refinement_welcome_message,
            ),

            # Multi-turn chat
            "continuePersonaCreationChat": (
                CreationChatPayload, chat.continue_persona_creation_chat,
            ),
            "getPersonaChatResponse": (PersonaChatPayload, chat.get_persona_chat_response),
            "getHelpChatResponse": (HelpChatPayload, chat.get_help_chat_response),
        }

    @property
    def action_names(self) -> frozenset[str]:
        return frozenset(self._actions)

    async def dispatch(self, action: str, payload: dict | None) -> Any:
        """Validate payload, run the action's handler, return its result."""
        entry = self._actions.get(action)
        context = ErrorContext(action=action)
        if entry is None:
            logger.warning(
                f"Unknown action: {action}",
                extra={"action": action, "error_code": "UNKNOWN_ACTION"},
            )
            raise UnknownActionError(action, context=context)

        model, handler = entry
        try:
            typed = model.model_validate(payload or {})
        except ValidationError as e:
            raise PayloadValidationError(
                f"Invalid payload for {action}: {_describe(e)}", context=context,
            ) from e

        logger.info(f"Dispatching action {action}", extra={"action": action})
        return await handler(typed, context)


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in e['loc']) or 'payload'}: {e['msg']}"
        for e in error.errors()
    )
