"""Persona Handlers — profile generation actions (web, document, summary, MBTI, text).

Invariants:
    - Structured persona results must contain at least one persona field; an empty
      or unrelated object is MalformedJsonError, never an emptied profile
    - createPersonaFromWeb tries one stricter reformat request, then surfaces the error
    - Blank fullSummary / fullTone short-circuit to "" without calling the service
    - Every handler returns JSON-ready data (camelCase keys)

Design Decisions:
    - No keyword-heuristic persona fallback: guessing fields would fabricate a profile
    - Persona nested under "persona"/"data" is unwrapped (frequent model quirk)
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from persona_ai.core.errors import (
    ErrorContext,
    MalformedJsonError,
    MalformedResponseError,
)
from persona_ai.schemas.actions import (
    ChangeSummaryPayload,
    DocumentPayload,
    FullSummaryPayload,
    FullTonePayload,
    NamePayload,
    ParamsPayload,
    PersonaStatePayload,
    SummaryTextPayload,
    TopicPayload,
)
from persona_ai.schemas.persona import (
    PERSONA_FIELDS,
    MbtiProfile,
    PersonaParams,
    PersonaState,
    WebPersonaResult,
    WebSource,
)
from persona_ai.services import recipes
from persona_ai.services.recipe_runner import RecipeRunner

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_SUMMARY = "Parameters were updated."
_NESTED_PERSONA_KEYS = ("persona", "data")


def as_text(value: Any) -> str:
    """Coerce a model-supplied field to a string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(as_text(v) for v in value)
    return str(value)


def coerce_persona(value: Any, raw_text: str) -> dict:
    """Normalize a parsed value into persona fields. Raises MalformedJsonError."""
    if isinstance(value, dict) and not any(f in value for f in PERSONA_FIELDS):
        for key in _NESTED_PERSONA_KEYS:
            if isinstance(value.get(key), dict):
                value = {**value, **value[key]}
                break
    if not isinstance(value, dict):
        raise MalformedJsonError("expected a persona object", raw_text)
    if not any(as_text(value.get(f)).strip() for f in PERSONA_FIELDS):
        raise MalformedJsonError("response contains no persona fields", raw_text)
    return {f: as_text(value.get(f)) for f in PERSONA_FIELDS} | {
        "summary": as_text(value.get("summary")),
    }


def coerce_params(value: Any, raw_text: str) -> PersonaParams:
    fields = coerce_persona(value, raw_text)
    fields.pop("summary")
    return PersonaParams.model_validate(fields)


def coerce_state(value: Any, raw_text: str) -> PersonaState:
    return PersonaState.model_validate(coerce_persona(value, raw_text))


def coerce_mbti(value: Any, raw_text: str) -> MbtiProfile:
    try:
        return MbtiProfile.model_validate(value)
    except ValidationError as e:
        raise MalformedJsonError(
            f"response does not match the MBTI profile shape ({e.error_count()} error(s))",
            raw_text,
        ) from e


def romaji_slug(text: str) -> str:
    """Lowercase and replace anything outside [a-z0-9] with '_'."""
    return re.sub(r"[^a-z0-9]", "_", text.strip().lower())


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, exclude_none=True)


class PersonaHandlers:
    """Persona-building actions."""

    def __init__(self, runner: RecipeRunner):
        self.runner = runner

    async def create_persona_from_web(
        self, payload: TopicPayload, context: ErrorContext,
    ) -> dict:
        research = await self.runner.research(
            recipes.WEB_RESEARCH, payload, context=context,
        )
        if not research.text.strip():
            raise MalformedResponseError(
                "AI could not find enough information on the topic.",
                "NO_RESEARCH_RESULTS", research.text, context,
            )
        try:
            params = await self.runner.run(
                recipes.PERSONA_FROM_TEXT, research.text,
                validate=coerce_params, context=context,
            )
        except MalformedResponseError as e:
            logger.warning(
                f"Persona extraction from web research failed, retrying with reformat: {e.code}",
                extra={"action": context.action, "error_code": e.code},
            )
            params = await self.runner.run(
                recipes.PERSONA_REFORMAT, research.text,
                validate=coerce_params, context=context,
            )
        result = WebPersonaResult(
            persona_state=params,
            sources=[WebSource.model_validate(s) for s in research.sources],
        )
        return _dump(result)

    async def extract_params_from_doc(
        self, payload: DocumentPayload, context: ErrorContext,
    ) -> dict:
        state = await self.runner.run(
            recipes.PERSONA_FROM_DOCUMENT, payload,
            validate=coerce_state, context=context,
        )
        return _dump(state)

    async def update_params_from_summary(
        self, payload: SummaryTextPayload, context: ErrorContext,
    ) -> dict:
        state = await self.runner.run(
            recipes.PERSONA_FROM_SUMMARY, payload,
            validate=coerce_state, context=context,
        )
        return _dump(state)

    async def generate_summary_from_params(
        self, payload: ParamsPayload, context: ErrorContext,
    ) -> str:
        return await self.runner.run(
            recipes.SUMMARY_FROM_PARAMS, payload, context=context,
        )

    async def generate_short_summary(
        self, payload: FullSummaryPayload, context: ErrorContext,
    ) -> str:
        if not payload.full_summary.strip():
            return ""
        text = await self.runner.run(
            recipes.SHORT_SUMMARY, payload.full_summary, context=context,
        )
        return text.strip()

    async def generate_short_tone(
        self, payload: FullTonePayload, context: ErrorContext,
    ) -> str:
        if not payload.full_tone.strip():
            return ""
        text = await self.runner.run(
            recipes.SHORT_TONE, payload.full_tone, context=context,
        )
        return text.strip()

    async def generate_change_summary(
        self, payload: ChangeSummaryPayload, context: ErrorContext,
    ) -> str:
        text = await self.runner.run(
            recipes.CHANGE_SUMMARY, payload, context=context,
        )
        return text.strip() or DEFAULT_CHANGE_SUMMARY

    async def generate_mbti_profile(
        self, payload: PersonaStatePayload, context: ErrorContext,
    ) -> dict:
        profile = await self.runner.run(
            recipes.MBTI_PROFILE, payload, validate=coerce_mbti, context=context,
        )
        return _dump(profile)

    async def translate_name_to_romaji(
        self, payload: NamePayload, context: ErrorContext,
    ) -> str:
        text = await self.runner.run(recipes.ROMAJI, payload, context=context)
        return romaji_slug(text)
