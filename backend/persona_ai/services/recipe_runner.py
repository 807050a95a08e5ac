"""Recipe Runner — executes a Recipe through the Invoker and applies its post-step.

Invariants:
    - Every completion call goes through Invoker.run (retry/failover applied per call)
    - A shape descriptor is appended to the system prompt as an advisory hint
    - STRUCTURED post-step: extract() then the caller's validator; failures surface
      as MalformedResponseError with the raw text, never as an empty default
    - web_search prompts follow pause_turn continuations (max 3) and merge sources

Design Decisions:
    - pause_turn continuation re-sends the assistant content as-is; each continuation
      is its own Invoker.run, so a quota failover mid-research is handled
    - Validator receives (value, raw_text) so it can attach the original text to errors
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from persona_ai.core.credential_pool import Credential
from persona_ai.core.domain_types import PostStep
from persona_ai.core.errors import ErrorContext
from persona_ai.core.response_extractor import extract
from persona_ai.infrastructure.anthropic_client import (
    WEB_SEARCH_BETA,
    CompletionClientRegistry,
    response_text,
    web_search_tool,
    web_sources,
)
from persona_ai.infrastructure.invoker import Invoker
from persona_ai.services import prompts
from persona_ai.services.recipes import Prompt, Recipe

logger = logging.getLogger(__name__)

Validator = Callable[[Any, str], Any]


@dataclass
class Completion:
    """Text and web sources gathered for one prompt."""
    text: str
    sources: list[dict] = field(default_factory=list)


def render_system(prompt: Prompt) -> str | None:
    """System prompt with the shape hint appended, if any."""
    if prompt.shape is None:
        return prompt.system
    hint = prompts.SCHEMA_INSTRUCTION.format(
        schema=json.dumps(prompt.shape, ensure_ascii=False, indent=2),
    )
    return f"{prompt.system}\n\n{hint}" if prompt.system else hint


class RecipeRunner:
    """Builds, invokes and post-processes recipes."""

    _MAX_PAUSE_TURNS = 3

    def __init__(
        self,
        invoker: Invoker,
        clients: CompletionClientRegistry,
        language: str = "Japanese",
        web_search_max_uses: int = 5,
    ):
        self.invoker = invoker
        self.clients = clients
        self.language = language
        self.web_search_max_uses = web_search_max_uses

    async def run(
        self,
        recipe: Recipe,
        *args,
        validate: Validator | None = None,
        context: ErrorContext | None = None,
    ) -> Any:
        """Run a recipe; returns text or the (validated) structured value."""
        prompt = recipe.build(*args, language=self.language)
        completion = await self.complete(prompt, context=context)
        if recipe.post_step is PostStep.TEXT:
            return completion.text
        value = extract(completion.text, prompt.shape)
        return validate(value, completion.text) if validate else value

    async def research(
        self, recipe: Recipe, *args, context: ErrorContext | None = None,
    ) -> Completion:
        """Run a web-search recipe and keep its sources."""
        prompt = recipe.build(*args, language=self.language)
        return await self.complete(prompt, context=context)

    async def complete(
        self, prompt: Prompt, context: ErrorContext | None = None,
    ) -> Completion:
        """Send one prompt (plus pause_turn continuations)."""
        system = render_system(prompt)
        tools = betas = None
        if prompt.web_search:
            tools = [web_search_tool(self.web_search_max_uses)]
            betas = [WEB_SEARCH_BETA]

        messages = list(prompt.messages)
        texts: list[str] = []
        sources: list[dict] = []
        for _ in range(self._MAX_PAUSE_TURNS):
            async def operation(credential: Credential, messages=messages):
                client = self.clients.for_credential(credential)
                return await client.create_message(
                    messages=messages, system=system, tools=tools, betas=betas,
                )

            response = await self.invoker.run(operation, context=context)
            texts.append(response_text(response))
            _merge_sources(sources, web_sources(response))
            if getattr(response, "stop_reason", None) != "pause_turn":
                break
            logger.info(
                "Web search paused, continuing",
                extra={"action": context.action if context else None},
            )
            messages = messages + [{
                "role": "assistant",
                "content": [b.model_dump(exclude_none=True) for b in response.content],
            }]
        return Completion(text="".join(texts), sources=sources)


def _merge_sources(into: list[dict], new: list[dict]) -> None:
    seen = {s["uri"] for s in into}
    for source in new:
        if source["uri"] not in seen:
            seen.add(source["uri"])
            into.append(source)
