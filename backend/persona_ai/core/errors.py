"""Error Hierarchy — typed, categorized exceptions for every invocation failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client-input errors are 400-level; credential/upstream errors carry their own status
    - to_response() always includes a top-level "message" string
    - Malformed-response errors carry the offending raw text, never a fabricated default
    - No internal details (tracebacks, secrets) in user-facing messages

Design Decisions:
    - Single hierarchy with PersonaAIError base: one FastAPI handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    EXTERNAL_API = "external_api"
    MALFORMED_RESPONSE = "malformed_response"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    action: str | None = None
    credential_index: int | None = None
    attempt: int | None = None


class PersonaAIError(Exception):
    """Base exception for all Persona AI errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the transport failure envelope ({message} + details)."""
        return {
            "message": self.message,
            "error": {
                "code": self.code,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "action": self.context.action,
                    "credential_index": self.context.credential_index,
                    "attempt": self.context.attempt,
                },
            },
        }


# ─── Client-input Errors (400-level) ────────────────────────────

class UnknownActionError(PersonaAIError):
    """Action name is not part of the fixed action set."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid action: {action}",
            "UNKNOWN_ACTION", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.action = action


class PayloadValidationError(PersonaAIError):
    """Action payload is missing fields or has the wrong shape."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_PAYLOAD", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


# ─── Configuration Errors ───────────────────────────────────────

class ConfigurationError(PersonaAIError):
    """No credential is configured — fatal, never retried."""
    def __init__(self, message: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message or (
                "Server configuration error: no ANTHROPIC_API_KEY or "
                "ANTHROPIC_FALLBACK_API_KEY environment variable is set."
            ),
            "NO_CREDENTIALS_CONFIGURED", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


# ─── Upstream Errors (recoverable signals + terminal escalations) ─

class QuotaExceededError(PersonaAIError):
    """Credential's call allotment is exhausted. Recovered by failover."""
    def __init__(self, message: str = "Quota exceeded", context: ErrorContext | None = None):
        super().__init__(
            message, "QUOTA_EXCEEDED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 429,
        )


class ServiceUnavailableError(PersonaAIError):
    """Remote service is temporarily overloaded. Recovered by backoff."""
    def __init__(
        self, message: str = "The model is overloaded", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "SERVICE_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )


class CredentialsExhaustedError(PersonaAIError):
    """Quota exceeded on the last enrolled credential."""
    def __init__(self, pool_size: int, context: ErrorContext | None = None):
        super().__init__(
            f"Quota exceeded on all {pool_size} configured API key(s). "
            "Configure another key or try again later.",
            "CREDENTIALS_EXHAUSTED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 429,
        )
        self.pool_size = pool_size


class RetriesExhaustedError(PersonaAIError):
    """Service stayed unavailable for the whole attempt budget."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"The model is overloaded: service unavailable after {attempts} attempt(s). "
            "Please try again later.",
            "RETRIES_EXHAUSTED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


# ─── Malformed Responses ────────────────────────────────────────

class MalformedResponseError(PersonaAIError):
    """Model output could not be turned into the expected structure."""
    def __init__(
        self, message: str, code: str, raw_text: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.MALFORMED_RESPONSE,
            ErrorSeverity.ERROR, context, 502,
        )
        self.raw_text = raw_text


class EmptyResponseError(MalformedResponseError):
    """Model returned nothing (after trimming)."""
    def __init__(self, raw_text: str = "", context: ErrorContext | None = None):
        super().__init__(
            "AI returned an empty response.", "EMPTY_RESPONSE", raw_text, context,
        )


class MalformedJsonError(MalformedResponseError):
    """Candidate text is not valid JSON, or not the expected shape."""
    def __init__(self, reason: str, raw_text: str, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to parse JSON from AI response: {reason}. "
            f"Response text:\n{raw_text}",
            "MALFORMED_JSON", raw_text, context,
        )
        self.reason = reason
