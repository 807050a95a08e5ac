"""Dependency Wiring — process-wide credential pool and dispatcher for FastAPI routes.

Invariants:
    - One CredentialPool per process; secrets read from Settings on first use only
    - One ActionDispatcher per process, sharing the pool's active index across requests
    - Nothing here performs network IO at import or construction time

Design Decisions:
    - lru_cache factories (like get_settings): tests swap them via dependency_overrides
"""

from functools import lru_cache

from persona_ai.config import Settings, get_settings
from persona_ai.core.credential_pool import Credential, CredentialPool
from persona_ai.core.domain_types import RetryPolicy
from persona_ai.infrastructure.anthropic_client import (
    AnthropicCompletionClient,
    CompletionClientRegistry,
)
from persona_ai.infrastructure.invoker import Invoker
from persona_ai.services.action_dispatch import ActionDispatcher
from persona_ai.services.recipe_runner import RecipeRunner


def retry_policy_from(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        initial_delay_ms=settings.retry_initial_delay_ms,
        backoff_factor=settings.retry_backoff_factor,
        reset_delay_on_failover=settings.reset_delay_on_failover,
    )


def build_dispatcher(settings: Settings, pool: CredentialPool) -> ActionDispatcher:
    """Assemble pool -> invoker -> runner -> dispatcher."""

    def make_client(credential: Credential) -> AnthropicCompletionClient:
        return AnthropicCompletionClient(
            api_key=credential.secret,
            model=settings.completion_model,
            max_tokens=settings.completion_max_tokens,
            timeout_seconds=settings.completion_timeout_seconds,
        )

    runner = RecipeRunner(
        Invoker(pool, retry_policy_from(settings)),
        CompletionClientRegistry(make_client),
        language=settings.response_language,
        web_search_max_uses=settings.web_search_max_uses,
    )
    return ActionDispatcher(runner)


@lru_cache
def get_credential_pool() -> CredentialPool:
    settings = get_settings()
    return CredentialPool(
        lambda: (settings.anthropic_api_key, settings.anthropic_fallback_api_key),
        guarded=settings.guard_credential_failover,
    )


@lru_cache
def get_action_dispatcher() -> ActionDispatcher:
    return build_dispatcher(get_settings(), get_credential_pool())
