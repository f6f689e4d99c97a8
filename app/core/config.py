"""Configuration management for the Journal Prompt Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Anthropic configuration (optional: without a key every generation falls back)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")

    # Environment
    JOURNAL_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Text generation
    PROMPT_MODEL: str = Field(default="claude-sonnet-4-6", description="Model for prompt generation")
    PROMPT_MAX_TOKENS: int = Field(default=1024, description="Max output tokens per generation call")
    PROMPT_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature")
    PROMPT_GATEWAY_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Timeout for one gateway exchange, tool rounds included"
    )
    PROMPT_TOOL_MAX_ROUNDS: int = Field(
        default=3, description="Max analysis-tool round trips in one history generation"
    )

    # Static prompts
    STATIC_PROMPTS_PER_TYPE: int = Field(default=2, description="Prompts requested per type at onboarding")

    # History-based prompts
    HISTORY_ENTRY_THRESHOLD: int = Field(default=5, description="Active entries required for history prompts")
    HISTORY_ENTRY_LOOKBACK: int = Field(default=10, description="Recent entries fetched for analysis")
    HISTORY_ENTRIES_SUMMARIZED: int = Field(default=5, description="Entries summarized in the instruction")
    HISTORY_PREVIEW_CHARS: int = Field(default=200, description="Plain-text preview length per entry")

    # Context-aware prompts
    CONTEXT_MIN_CHARS: int = Field(default=100, description="Orchestrator guard on draft length")
    CONTEXT_TRIGGER_MIN_CHARS: int = Field(default=150, description="Trigger guard on draft length")
    CONTEXT_DEBOUNCE_SECONDS: float = Field(default=2.0, description="Debounce window for draft changes")
    CONTEXT_TAIL_CHARS: int = Field(default=500, description="Draft characters sent to the generator")
    CONTEXT_SESSION_IDLE_SECONDS: float = Field(default=1800.0, description="Idle draft sessions are dropped after this")

    # Background work
    PROMPT_WORKER_COUNT: int = Field(default=2, description="Workers consuming the generation queue")

    # Maintenance
    PROMPT_RETENTION_DAYS: int = Field(
        default=30, description="Inactive prompts older than this are deleted by cleanup"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
