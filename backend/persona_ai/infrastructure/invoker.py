"""Invoker — runs one completion operation with backoff retries and credential failover.

Invariants:
    - No credential configured: ConfigurationError before any call is made
    - Quota exceeded (429): advance the pool, reset the attempt budget, keep the delay,
      retry immediately; pool exhausted -> CredentialsExhaustedError
    - Service unavailable (503 / 529): sleep delay, delay *= backoff_factor, same
      credential; budget spent -> RetriesExhaustedError, pool untouched
    - Anything else: re-raised unmodified, never retried, never failed over
    - Active credential index only moves forward, even across nested failures

Design Decisions:
    - Explicit loop carrying (attempts_remaining, delay_ms) instead of recursion:
      no stack growth under failover storms
    - Delay survives failover unless RetryPolicy.reset_delay_on_failover is set
    - sleep is injected: tests observe delays without waiting
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from anthropic import APIStatusError

from persona_ai.core.credential_pool import Credential, CredentialPool
from persona_ai.core.domain_types import FailureKind, RetryPolicy
from persona_ai.core.errors import (
    ConfigurationError,
    CredentialsExhaustedError,
    ErrorContext,
    QuotaExceededError,
    RetriesExhaustedError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[Credential], Awaitable[T]]
Sleep = Callable[[float], Awaitable[None]]

_QUOTA_STATUSES = frozenset({429})
# 529 is Anthropic's "overloaded"; 503 is the generic unavailable signal
_UNAVAILABLE_STATUSES = frozenset({503, 529})


def classify_failure(error: BaseException) -> FailureKind:
    """Map an operation failure to the invoker's reaction."""
    if isinstance(error, QuotaExceededError):
        return FailureKind.QUOTA_EXCEEDED
    if isinstance(error, ServiceUnavailableError):
        return FailureKind.SERVICE_UNAVAILABLE
    if isinstance(error, APIStatusError):
        if error.status_code in _QUOTA_STATUSES:
            return FailureKind.QUOTA_EXCEEDED
        if error.status_code in _UNAVAILABLE_STATUSES:
            return FailureKind.SERVICE_UNAVAILABLE
    return FailureKind.OTHER


class Invoker:
    """Executes operations against the pool's active credential."""

    def __init__(
        self,
        pool: CredentialPool,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.pool = pool
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def run(
        self,
        operation: Operation,
        policy: RetryPolicy | None = None,
        context: ErrorContext | None = None,
    ):
        """Run `operation(credential)` until success or a terminal failure."""
        policy = policy or self.policy
        attempts_remaining = policy.max_attempts
        delay_ms = policy.initial_delay_ms
        attempt = 0

        while True:
            try:
                credential = self.pool.active_credential()
            except ConfigurationError as e:
                if context is not None:
                    e.context = ErrorContext(action=context.action)
                raise
            attempt += 1
            try:
                return await operation(credential)
            except Exception as e:
                kind = classify_failure(e)
                if kind is FailureKind.QUOTA_EXCEEDED:
                    self._fail_over(e, credential, attempt, context)
                    attempts_remaining = policy.max_attempts
                    if policy.reset_delay_on_failover:
                        delay_ms = policy.initial_delay_ms
                    continue
                if kind is FailureKind.SERVICE_UNAVAILABLE:
                    if attempts_remaining <= 1:
                        logger.error(
                            f"Service unavailable, {policy.max_attempts} attempt(s) used: {e}",
                            extra={
                                "attempt": attempt,
                                "credential_index": credential.index,
                                "error_code": "RETRIES_EXHAUSTED",
                            },
                        )
                        raise RetriesExhaustedError(
                            policy.max_attempts,
                            context=self._context(context, credential, attempt),
                        ) from e
                    logger.warning(
                        f"Service unavailable, retry in {delay_ms:g}ms: {e}",
                        extra={
                            "attempt": attempt,
                            "credential_index": credential.index,
                            "delay_ms": delay_ms,
                        },
                    )
                    await self._sleep(delay_ms / 1000)
                    delay_ms *= policy.backoff_factor
                    attempts_remaining -= 1
                    continue
                raise

    def _fail_over(
        self,
        error: Exception,
        credential: Credential,
        attempt: int,
        context: ErrorContext | None,
    ) -> None:
        logger.warning(
            f"Quota exceeded on credential {credential.index}: {error}",
            extra={"attempt": attempt, "credential_index": credential.index},
        )
        if self.pool.advance(observed_index=credential.index):
            return
        logger.error(
            "All API keys have been exhausted",
            extra={
                "credential_index": credential.index,
                "error_code": "CREDENTIALS_EXHAUSTED",
            },
        )
        raise CredentialsExhaustedError(
            self.pool.size, context=self._context(context, credential, attempt),
        ) from error

    @staticmethod
    def _context(
        context: ErrorContext | None, credential: Credential, attempt: int,
    ) -> ErrorContext:
        return ErrorContext(
            action=context.action if context else None,
            credential_index=credential.index,
            attempt=attempt,
        )
