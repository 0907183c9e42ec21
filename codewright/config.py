"""Settings via pydantic-settings with CODEWRIGHT_ env prefix.

Credentials use validation_alias to read the same unprefixed env vars
(ANTHROPIC_API_KEY, GITHUB_ACCESS_TOKEN) that other tooling already
exports, so a single .env file drives everything.
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CODEWRIGHT_", env_file=".env", extra="ignore")

    # Credentials -- unprefixed aliases
    anthropic_api_key: str = Field("", validation_alias="ANTHROPIC_API_KEY")
    github_token: str = Field("", validation_alias="GITHUB_ACCESS_TOKEN")

    # LLM
    model: str = "claude-3-5-sonnet-20240620"
    editor_model: str = "claude-3-5-sonnet-20240620"
    max_tokens: int = 4000
    prompt_caching: bool = True

    # Direct API settings
    api_base_url: str = "https://api.anthropic.com"
    api_timeout_connect: int = 10  # seconds
    api_timeout_read: int = 120  # seconds
    github_api_url: str = "https://api.github.com"

    log_level: str = "info"
    workspace_dir: str = "."

    # Conversation + agent loop
    history_size: int = Field(1000, ge=1)
    max_tool_rounds: int = Field(2, ge=0)  # follow-up requests after tool execution
    completion_marker: str = "AUTOMODE_COMPLETE"
    max_continuation_iterations: int = Field(25, ge=1)
    tool_errors_fatal: bool = True

    # Rate limit retry
    rate_limit_delay: float = Field(5.0, ge=0.0)
    rate_limit_backoff: float = 2.0
    rate_limit_max_delay: float = 60.0
    rate_limit_max_retries: int = Field(5, ge=0)

    # Editing
    max_edit_passes: int = Field(2, ge=1)
    confirm_edits: Literal["auto", "interactive", "dry_run"] = "auto"
    strict_edit_parsing: bool = False

    # CLI
    prompt_file: str = "prompt.txt"
    editor_command: str = "vim"
    transcript_dir: str = "."

    @model_validator(mode="after")
    def _validate_retry(self) -> "Settings":
        if self.rate_limit_backoff < 1.0:
            raise ValueError("rate_limit_backoff must be >= 1.0")
        if self.rate_limit_max_delay < self.rate_limit_delay:
            raise ValueError(
                f"rate_limit_max_delay ({self.rate_limit_max_delay}) must be >= "
                f"rate_limit_delay ({self.rate_limit_delay})"
            )
        return self

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (0-based), capped."""
        delay = self.rate_limit_delay * (self.rate_limit_backoff ** attempt)
        return min(delay, self.rate_limit_max_delay)
