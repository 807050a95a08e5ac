"""Recipes — the fixed set of call shapes, each a pure payload -> Prompt builder.

Invariants:
    - Builders are pure: no IO, no clock, no randomness
    - Every recipe declares its post-step (TEXT or STRUCTURED); STRUCTURED recipes
      always carry a shape descriptor
    - Chat histories: "model" -> "assistant", empty turns dropped, leading assistant
      turns dropped, adjacent same-role turns merged
    - A chat whose last turn is not a non-empty user message is rejected before any call

Design Decisions:
    - Recipe as frozen dataclass (name, build, post_step): the runner needs nothing
      else to execute one
    - Builders take the output language as a keyword: settings stay out of core text
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from persona_ai.core.domain_types import PostStep, ShapeDescriptor
from persona_ai.core.errors import PayloadValidationError
from persona_ai.schemas.actions import (
    ChangeSummaryPayload,
    CreationChatPayload,
    DocumentPayload,
    HelpChatPayload,
    NamePayload,
    ParamsPayload,
    PersonaChatPayload,
    PersonaStatePayload,
    SummaryTextPayload,
    TopicPayload,
)
from persona_ai.schemas.persona import PERSONA_FIELDS, PersonaState
from persona_ai.services import prompts
from persona_ai.services.shapes import CREATION_CHAT_SHAPE, MBTI_SHAPE, PERSONA_SHAPE

_ROLE_MAP = {"user": "user", "model": "assistant"}


@dataclass(frozen=True)
class Prompt:
    """Everything needed for one completion request."""
    messages: list[dict]
    system: str | None = None
    shape: ShapeDescriptor | None = None
    web_search: bool = False


@dataclass(frozen=True)
class Recipe:
    """Named call shape: builder + declared post-step."""
    name: str
    build: Callable[..., Prompt] = field(repr=False)
    post_step: PostStep = PostStep.TEXT


def user_prompt(text: str, shape: ShapeDescriptor | None = None, **kwargs) -> Prompt:
    """Single-turn prompt."""
    return Prompt(messages=[{"role": "user", "content": text}], shape=shape, **kwargs)


def to_messages(turns: Iterable[tuple[str, str]]) -> list[dict]:
    """Normalize caller history into the service's alternating message list."""
    messages: list[dict] = []
    for role, text in turns:
        if not text or not text.strip():
            continue
        mapped = _ROLE_MAP.get(role, "user")
        if not messages and mapped == "assistant":
            continue
        if messages and messages[-1]["role"] == mapped:
            messages[-1]["content"] += "\n\n" + text
        else:
            messages.append({"role": mapped, "content": text})
    if not messages or messages[-1]["role"] != "user":
        raise PayloadValidationError("No message provided to send.")
    return messages


def persona_core(state: PersonaState) -> dict:
    """Editable persona parameters only (no summary, sources, MBTI)."""
    return state.model_dump(include=set(PERSONA_FIELDS))


# --- Builders ---------------------------------------------------------------

def build_web_research(payload: TopicPayload, *, language: str) -> Prompt:
    return user_prompt(
        prompts.WEB_RESEARCH_PROMPT.format(topic=payload.topic, language=language),
        web_search=True,
    )


def build_persona_from_text(text: str, *, language: str) -> Prompt:
    return user_prompt(
        prompts.PERSONA_FROM_TEXT_PROMPT.format(text=text, language=language),
        PERSONA_SHAPE,
    )


def build_persona_reformat(text: str, *, language: str) -> Prompt:
    return user_prompt(
        prompts.PERSONA_REFORMAT_PROMPT.format(text=text, language=language),
        PERSONA_SHAPE,
    )


def build_persona_from_document(payload: DocumentPayload, *, language: str) -> Prompt:
    return user_prompt(
        prompts.PERSONA_FROM_DOCUMENT_PROMPT.format(
            text=payload.document_text, language=language,
        ),
        PERSONA_SHAPE,
    )


def build_persona_from_summary(payload: SummaryTextPayload, *, language: str) -> Prompt:
    return user_prompt(
        prompts.PERSONA_FROM_SUMMARY_PROMPT.format(
            text=payload.summary_text, language=language,
        ),
        PERSONA_SHAPE,
    )


def build_summary_from_params(payload: ParamsPayload, *, language: str) -> Prompt:
    params = payload.params.model_dump(
        by_alias=True, exclude_none=True, exclude={"sources", "mbti_profile"},
    )
    return user_prompt(prompts.SUMMARY_FROM_PARAMS_PROMPT.format(
        params=prompts.to_json(params), language=language,
    ))


def build_short_summary(text: str, *, language: str) -> Prompt:
    return user_prompt(prompts.SHORT_SUMMARY_PROMPT.format(text=text, language=language))


def build_short_tone(text: str, *, language: str) -> Prompt:
    return user_prompt(prompts.SHORT_TONE_PROMPT.format(text=text, language=language))


def build_change_summary(payload: ChangeSummaryPayload, *, language: str) -> Prompt:
    return user_prompt(prompts.CHANGE_SUMMARY_PROMPT.format(
        old=prompts.to_json(payload.old_state),
        new=prompts.to_json(payload.new_state),
        language=language,
    ))


def build_mbti_profile(payload: PersonaStatePayload, *, language: str) -> Prompt:
    return user_prompt(
        prompts.MBTI_PROMPT.format(
            persona=prompts.to_json(persona_core(payload.persona_state)),
            language=language,
        ),
        MBTI_SHAPE,
    )


def build_refinement_welcome(payload: PersonaStatePayload, *, language: str) -> Prompt:
    state = payload.persona_state
    persona = {
        "name": state.name, "role": state.role,
        "tone": state.tone, "personality": state.personality,
    }
    return user_prompt(prompts.REFINEMENT_WELCOME_PROMPT.format(
        persona=prompts.to_json(persona), language=language,
    ))


def build_creation_chat(payload: CreationChatPayload, *, language: str) -> Prompt:
    return Prompt(
        messages=to_messages((m.role, m.text) for m in payload.history),
        system=prompts.CREATION_CHAT_SYSTEM.format(
            current=prompts.to_json(payload.current_params.model_dump()),
            language=language,
        ),
        shape=CREATION_CHAT_SHAPE,
    )


def build_romaji(payload: NamePayload, *, language: str) -> Prompt:
    return user_prompt(prompts.ROMAJI_PROMPT.format(name=payload.name))


def build_persona_chat(payload: PersonaChatPayload, *, language: str) -> Prompt:
    state = payload.persona_state
    return Prompt(
        messages=to_messages((m.role, m.text) for m in payload.history),
        system=prompts.PERSONA_CHAT_SYSTEM.format(
            language=language, **persona_core(state),
        ),
    )


def build_help_chat(payload: HelpChatPayload, *, language: str) -> Prompt:
    return Prompt(
        messages=to_messages((m.role, m.text) for m in payload.history),
        system=prompts.HELP_CHAT_SYSTEM.format(language=language),
    )


# --- Registry ---------------------------------------------------------------

WEB_RESEARCH = Recipe("web_research", build_web_research)
PERSONA_FROM_TEXT = Recipe("persona_from_text", build_persona_from_text, PostStep.STRUCTURED)
PERSONA_REFORMAT = Recipe("persona_reformat", build_persona_reformat, PostStep.STRUCTURED)
PERSONA_FROM_DOCUMENT = Recipe(
    "persona_from_document", build_persona_from_document, PostStep.STRUCTURED,
)
PERSONA_FROM_SUMMARY = Recipe(
    "persona_from_summary", build_persona_from_summary, PostStep.STRUCTURED,
)
SUMMARY_FROM_PARAMS = Recipe("summary_from_params", build_summary_from_params)
SHORT_SUMMARY = Recipe("short_summary", build_short_summary)
SHORT_TONE = Recipe("short_tone", build_short_tone)
CHANGE_SUMMARY = Recipe("change_summary", build_change_summary)
MBTI_PROFILE = Recipe("mbti_profile", build_mbti_profile, PostStep.STRUCTURED)
REFINEMENT_WELCOME = Recipe("refinement_welcome", build_refinement_welcome)
CREATION_CHAT = Recipe("creation_chat", build_creation_chat, PostStep.STRUCTURED)
ROMAJI = Recipe("romaji", build_romaji)
PERSONA_CHAT = Recipe("persona_chat", build_persona_chat)
HELP_CHAT = Recipe("help_chat", build_help_chat)
