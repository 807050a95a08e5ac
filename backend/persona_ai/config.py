"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - Blank credential values are treated as absent

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Both credentials optional here: absence is reported lazily by the credential
      pool as ConfigurationError, so the app still boots and /health/ready can say why
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Credentials: primary + optional fallback
    anthropic_api_key: str | None = None
    anthropic_fallback_api_key: str | None = None

    @field_validator("anthropic_api_key", "anthropic_fallback_api_key", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    # Completion model
    completion_model: str = "claude-sonnet-4-5"
    completion_max_tokens: int = 4096
    completion_timeout_seconds: int = 120

    # Retry / failover policy
    retry_max_attempts: int = Field(3, ge=1)
    retry_initial_delay_ms: int = Field(1000, ge=0)
    retry_backoff_factor: float = Field(2.0, gt=1)
    # Default carries the current backoff delay over to the next credential
    reset_delay_on_failover: bool = False
    # Compare-and-advance on failover; False restores the unguarded race
    guard_credential_failover: bool = True

    # Recipes
    response_language: str = "Japanese"
    web_search_max_uses: int = 5

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
