"""Persona Schemas — Pydantic models for persona data crossing the AI boundary.

Invariants:
    - Wire format is camelCase (typeName, responseText, shortSummary); Python is snake_case
    - Inputs ignore unknown keys (clients send whole persona records incl. id/history)
    - MBTI scores bounded 0-100
    - PERSONA_FIELDS is the single list of editable persona parameters

Design Decisions:
    - alias_generator=to_camel + populate_by_name: accept both spellings on input,
      dump by_alias for the wire
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PERSONA_FIELDS = (
    "name", "role", "tone", "personality", "worldview", "experience", "other",
)


class WireModel(BaseModel):
    """Base for camelCase wire models."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )


class WebSource(WireModel):
    """A page found by web search."""
    title: str = "Unknown Source"
    uri: str


class MbtiScores(WireModel):
    mind: float = Field(ge=0, le=100)      # 0 (I) to 100 (E)
    energy: float = Field(ge=0, le=100)    # 0 (S) to 100 (N)
    nature: float = Field(ge=0, le=100)    # 0 (T) to 100 (F)
    tactics: float = Field(ge=0, le=100)   # 0 (J) to 100 (P)


class MbtiProfile(WireModel):
    """MBTI analysis of a persona."""
    type: str = Field(min_length=4, max_length=6)
    type_name: str
    description: str
    scores: MbtiScores


class PersonaParams(WireModel):
    """The editable persona parameters."""
    name: str = ""
    role: str = ""
    tone: str = ""
    personality: str = ""
    worldview: str = ""
    experience: str = ""
    other: str = ""


class PersonaState(PersonaParams):
    """Persona parameters plus derived fields."""
    summary: str = ""
    short_summary: str | None = None
    short_tone: str | None = None
    sources: list[WebSource] = Field(default_factory=list)
    mbti_profile: MbtiProfile | None = None
    voice_id: str | None = None


class ChatPart(WireModel):
    text: str = ""


class ChatMessage(WireModel):
    """Test-chat turn in the parts format."""
    role: Literal["user", "model"]
    parts: list[ChatPart] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts)


class CreationChatMessage(WireModel):
    """Persona-creation chat turn."""
    role: Literal["user", "model"]
    text: str = ""


class CreationChatResponse(WireModel):
    """Assistant reply plus the parameters it decided to change."""
    response_text: str
    updated_parameters: dict[str, str] = Field(default_factory=dict)


class WebPersonaResult(WireModel):
    persona_state: PersonaParams
    sources: list[WebSource] = Field(default_factory=list)
