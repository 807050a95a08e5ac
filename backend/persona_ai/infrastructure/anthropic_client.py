"""Anthropic Completion Client — one SDK client per credential, no SDK-level retries.

Invariants:
    - SDK built with max_retries=0: retry, backoff and failover belong to the Invoker
    - One AsyncAnthropic instance per credential index, created on first use
    - response_text() joins text blocks only (tool blocks ignored)
    - web_sources() returns unique URIs in first-seen order

Design Decisions:
    - Raw SDK errors are NOT mapped here: the Invoker classifies RateLimitError /
      overloaded statuses itself and must see the original exception
    - Web search routed through the beta endpoint with an explicit betas list
"""

import logging
from collections.abc import Callable
from typing import Any

import anthropic

from persona_ai.core.credential_pool import Credential

logger = logging.getLogger(__name__)

WEB_SEARCH_BETA = "web-search-2025-03-05"


def web_search_tool(max_uses: int = 5) -> dict:
    """Server-side web search tool definition."""
    return {
        "type": "web_search_20250305",
        "name": "web_search",
        "max_uses": max_uses,
    }


class AnthropicCompletionClient:
    """Thin async wrapper over AsyncAnthropic bound to one API key."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4096,
        timeout_seconds: int = 120,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model
        self.max_tokens = max_tokens

    async def create_message(
        self,
        *,
        messages: list,
        system: str | None = None,
        tools: list | None = None,
        betas: list[str] | None = None,
    ):
        """Single completion call. Errors propagate untouched."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools
        if betas:
            response = await self.client.beta.messages.create(**kwargs, betas=betas)
        else:
            response = await self.client.messages.create(**kwargs)
        self._log_success(response)
        return response

    def _log_success(self, response) -> None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return
        logger.info(
            "Anthropic API success",
            extra={
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )


ClientFactory = Callable[[Credential], AnthropicCompletionClient]


class CompletionClientRegistry:
    """Caches one completion client per credential index."""

    def __init__(self, factory: ClientFactory):
        self._factory = factory
        self._clients: dict[int, AnthropicCompletionClient] = {}

    def for_credential(self, credential: Credential) -> AnthropicCompletionClient:
        client = self._clients.get(credential.index)
        if client is None:
            client = self._factory(credential)
            self._clients[credential.index] = client
        return client


def response_text(response) -> str:
    """Concatenate the text blocks of a message response."""
    parts = [
        b.text for b in getattr(response, "content", None) or []
        if getattr(b, "type", None) == "text" and getattr(b, "text", None)
    ]
    return "".join(parts)


def web_sources(response) -> list[dict]:
    """Collect {title, uri} pairs from web_search_tool_result blocks."""
    sources: list[dict] = []
    seen: set[str] = set()
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) != "web_search_tool_result":
            continue
        results = getattr(block, "content", None)
        if not isinstance(results, list):
            continue  # error payload, not a result list
        for result in results:
            uri = _field(result, "url")
            if not uri or uri in seen:
                continue
            seen.add(uri)
            sources.append({
                "title": _field(result, "title") or "Unknown Source",
                "uri": uri,
            })
    return sources


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)
