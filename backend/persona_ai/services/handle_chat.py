"""Chat Handlers — multi-turn and greeting actions.

Invariants:
    - History is passed through as given (after role normalization); nothing is stored
    - continuePersonaCreationChat keeps only known persona keys in updatedParameters
    - A creation-chat reply that is not JSON, or has no responseText, surfaces as
      MalformedJsonError
"""

from typing import Any

from persona_ai.core.errors import ErrorContext, MalformedJsonError
from persona_ai.schemas.actions import (
    CreationChatPayload,
    HelpChatPayload,
    PersonaChatPayload,
    PersonaStatePayload,
)
from persona_ai.schemas.persona import PERSONA_FIELDS, CreationChatResponse
from persona_ai.services import recipes
from persona_ai.services.handle_persona import as_text
from persona_ai.services.recipe_runner import RecipeRunner


def coerce_creation_reply(value: Any, raw_text: str) -> CreationChatResponse:
    if not isinstance(value, dict):
        raise MalformedJsonError("expected a chat reply object", raw_text)
    reply = as_text(value.get("responseText")).strip()
    if not reply:
        raise MalformedJsonError("chat reply has no responseText", raw_text)
    updates = value.get("updatedParameters")
    if not isinstance(updates, dict):
        updates = {}
    return CreationChatResponse(
        response_text=reply,
        updated_parameters={
            k: as_text(v) for k, v in updates.items() if k in PERSONA_FIELDS
        },
    )


class ChatHandlers:
    """Conversation actions."""

    def __init__(self, runner: RecipeRunner):
        self.runner = runner

    async def generate_refinement_welcome_message(
        self, payload: PersonaStatePayload, context: ErrorContext,
    ) -> str:
        return await self.runner.run(
            recipes.REFINEMENT_WELCOME, payload, context=context,
        )

    async def continue_persona_creation_chat(
        self, payload: CreationChatPayload, context: ErrorContext,
    ) -> dict:
        reply = await self.runner.run(
            recipes.CREATION_CHAT, payload,
            validate=coerce_creation_reply, context=context,
        )
        return reply.model_dump(by_alias=True)

    async def get_persona_chat_response(
        self, payload: PersonaChatPayload, context: ErrorContext,
    ) -> str:
        return await self.runner.run(recipes.PERSONA_CHAT, payload, context=context)

    async def get_help_chat_response(
        self, payload: HelpChatPayload, context: ErrorContext,
    ) -> str:
        return await self.runner.run(recipes.HELP_CHAT, payload, context=context)
