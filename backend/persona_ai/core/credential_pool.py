"""Credential Pool — ordered API keys plus the index of the one currently in use.

Invariants:
    - Secrets are loaded exactly once, lazily, on first use; the pool is immutable after
    - A fallback equal to the primary is enrolled once
    - active_index never decreases and never exceeds pool_size - 1
    - active_credential() with zero credentials raises ConfigurationError (fatal)
    - Credential repr never shows the secret

Design Decisions:
    - Active index lives in an injected SharedIndex: independent pools can be tested
      in isolation, and one index can be shared by every request in the process
    - Guarded advance (compare-and-advance under a lock) is the default; the
      unguarded advance keeps the original skip race as an explicit opt-in
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from persona_ai.core.domain_types import InvocationState
from persona_ai.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SecretLoader = Callable[[], tuple[str | None, str | None]]


@dataclass(frozen=True)
class Credential:
    """Opaque secret with a stable position in the pool."""
    index: int
    secret: str = field(repr=False)


class SharedIndex:
    """Monotonic counter shared by all requests using one pool."""

    def __init__(self, start: int = 0):
        self._value = start
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def advance(self, limit: int) -> bool:
        """Unconditional step forward (racy by design when used concurrently)."""
        if self._value + 1 < limit:
            self._value += 1
            return True
        return False

    def compare_and_advance(self, expected: int, limit: int) -> bool:
        """Step forward only if nobody else already moved past `expected`."""
        with self._lock:
            if self._value != expected:
                return self._value > expected
            if self._value + 1 < limit:
                self._value += 1
                return True
            return False


class CredentialPool:
    """Lazily-built, ordered set of credentials with an active cursor."""

    def __init__(
        self,
        load_secrets: SecretLoader,
        index: SharedIndex | None = None,
        guarded: bool = True,
    ):
        self._load_secrets = load_secrets
        self._index = index or SharedIndex()
        self._guarded = guarded
        self._credentials: tuple[Credential, ...] = ()
        self._initialized = False
        self._init_lock = threading.Lock()

    @classmethod
    def from_secrets(
        cls, primary: str | None, fallback: str | None = None, **kwargs,
    ) -> "CredentialPool":
        return cls(lambda: (primary, fallback), **kwargs)

    def initialize(self) -> None:
        """Enroll primary and fallback secrets. Idempotent."""
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            primary, fallback = self._load_secrets()
            secrets = [s for s in (primary, fallback) if s]
            if len(secrets) == 2 and secrets[0] == secrets[1]:
                secrets.pop()
            self._credentials = tuple(
                Credential(index=i, secret=s) for i, s in enumerate(secrets)
            )
            self._initialized = True
            logger.info(
                f"Credential pool initialized with {len(self._credentials)} key(s)",
            )

    @property
    def size(self) -> int:
        self.initialize()
        return len(self._credentials)

    @property
    def state(self) -> InvocationState:
        return InvocationState(active_index=self._index.value, pool_size=self.size)

    def active_credential(self) -> Credential:
        """Return the credential in use. Raises ConfigurationError if none."""
        self.initialize()
        if not self._credentials:
            raise ConfigurationError()
        return self._credentials[self._index.value]

    def advance(self, observed_index: int | None = None) -> bool:
        """Move to the next credential. False when the pool is exhausted.

        observed_index is the index the failing call used. With the guard on,
        a request that lost the race to another failover just retries on the
        current credential instead of skipping one.
        """
        limit = self.size
        before = self._index.value
        if self._guarded and observed_index is not None:
            moved = self._index.compare_and_advance(observed_index, limit)
        else:
            moved = self._index.advance(limit)
        if moved and self._index.value != before:
            logger.warning(
                f"Switched to fallback API key (index {self._index.value})",
                extra={"credential_index": self._index.value},
            )
        return moved
