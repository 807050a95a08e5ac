"""Domain Types — value objects shared by the credential pool, invoker and extractor.

Invariants:
    - RetryPolicy: max_attempts >= 1, initial_delay_ms >= 0, backoff_factor > 1
    - InvocationState: 0 <= active_index < pool_size whenever pool_size > 0
    - ExtractionResult holds exactly one of (value, error)
    - All failure classes encoded as Enums, never raw strings

Design Decisions:
    - Frozen dataclasses: policies and snapshots are values, never mutated in place
    - ShapeDescriptor is a plain JSON-schema dict: it is sent to the service as-is
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from persona_ai.core.errors import MalformedResponseError

# Advisory JSON-schema hint; the service may ignore it
ShapeDescriptor = dict[str, Any]


class FailureKind(str, Enum):
    """How the invoker reacts to an operation failure."""
    QUOTA_EXCEEDED = "quota_exceeded"          # fail over to next credential
    SERVICE_UNAVAILABLE = "service_unavailable"  # back off, same credential
    OTHER = "other"                            # propagate unmodified


class PostStep(str, Enum):
    """What a recipe does with the raw completion text."""
    TEXT = "text"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and exponential backoff parameters."""
    max_attempts: int = 3
    initial_delay_ms: float = 1000
    backoff_factor: float = 2.0
    reset_delay_on_failover: bool = False

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        if self.backoff_factor <= 1:
            raise ValueError("backoff_factor must be > 1")


@dataclass(frozen=True)
class InvocationState:
    """Snapshot of the credential pool position."""
    active_index: int
    pool_size: int

    @property
    def has_fallback(self) -> bool:
        return self.active_index + 1 < self.pool_size


@dataclass(frozen=True)
class ExtractionResult:
    """Either a parsed structured value or the typed failure that prevented it."""
    value: Any = None
    error: MalformedResponseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def raw_text(self) -> str | None:
        return self.error.raw_text if self.error else None

    def unwrap(self) -> Any:
        """Return the value or raise the stored failure."""
        if self.error is not None:
            raise self.error
        return self.value
