"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "testing", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Discord (consumed by the chat-platform layer, not the bridge core)
    discord_bot_token: SecretStr = Field(
        default=SecretStr(""),
        description="Discord bot token",
    )
    discord_application_id: str = Field(
        default="",
        description="Discord application ID",
    )
    projects_base_path: str = Field(
        default="~/projects",
        description="Directory new project folders are created under",
    )

    # Claude CLI
    claude_executable: str = Field(
        default="claude",
        description="Name or path of the Claude CLI executable",
    )
    claude_allowed_tools: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated default tool allowlist (e.g. 'Read,Write,Bash')",
    )
    claude_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Deadline for one-shot (JSON) executions",
    )
    claude_stream_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Deadline for streaming executions",
    )

    # Streaming message updates
    stream_min_content_change: int = Field(
        default=50,
        ge=0,
        description="Minimum growth in characters between two message edits",
    )
    stream_max_updates: int = Field(
        default=20,
        ge=0,
        description="Maximum message edits per streamed response",
    )
    message_limit: int = Field(
        default=2000,
        ge=10,
        description="Maximum length of a single chat message",
    )

    @field_validator("claude_allowed_tools", mode="before")
    @classmethod
    def _split_allowed_tools(cls, value: object) -> object:
        if isinstance(value, str):
            return [tool.strip() for tool in value.split(",") if tool.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
