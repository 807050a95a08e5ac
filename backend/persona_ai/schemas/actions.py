"""Action Schemas — transport envelope and one payload model per action.

Invariants:
    - AIRequest.action is free text here; membership is checked by the dispatcher
      (unknown action is UNKNOWN_ACTION, not a schema error)
    - Payload field names match the wire contract (camelCase aliases)

Design Decisions:
    - Payload models declared next to each other: the whole action surface is
      readable in one file
"""

from typing import Any

from pydantic import BaseModel, Field

from persona_ai.schemas.persona import (
    ChatMessage,
    CreationChatMessage,
    PersonaParams,
    PersonaState,
    WireModel,
)


class AIRequest(BaseModel):
    """Inbound transport call."""
    action: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


class AIResponse(BaseModel):
    """Outbound success envelope."""
    result: Any


# --- Payloads ---------------------------------------------------------------

class TopicPayload(WireModel):
    topic: str = Field(min_length=1)


class DocumentPayload(WireModel):
    document_text: str = Field(min_length=1)


class SummaryTextPayload(WireModel):
    summary_text: str = Field(min_length=1)


class ParamsPayload(WireModel):
    params: PersonaState


class FullSummaryPayload(WireModel):
    full_summary: str = ""


class FullTonePayload(WireModel):
    full_tone: str = ""


class ChangeSummaryPayload(WireModel):
    old_state: dict[str, Any] = Field(default_factory=dict)
    new_state: dict[str, Any] = Field(default_factory=dict)


class PersonaStatePayload(WireModel):
    persona_state: PersonaState


class CreationChatPayload(WireModel):
    history: list[CreationChatMessage]
    current_params: PersonaParams = Field(default_factory=PersonaParams)


class NamePayload(WireModel):
    name: str = Field(min_length=1)


class PersonaChatPayload(WireModel):
    persona_state: PersonaState
    history: list[ChatMessage]


class HelpChatPayload(WireModel):
    history: list[ChatMessage]
