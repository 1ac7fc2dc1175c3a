"""Conversation session models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SessionState(StrEnum):
    """Lifecycle of a conversation with Claude."""

    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"  # CLI is running
    AWAITING_INPUT = "awaiting_input"  # Claude asked a question


def utc_now() -> datetime:
    return datetime.now(UTC)


class ConversationSession(BaseModel):
    """Maps a chat channel or thread to a Claude resume token.

    Instances are immutable; the store replaces them wholesale on update.
    """

    model_config = ConfigDict(frozen=True)

    channel_id: str = Field(..., description="Conversation key (channel or thread ID)")
    thread_id: str | None = None
    claude_session_id: str | None = Field(
        default=None,
        description="Resume token from the last successful execution",
    )
    project_path: str = Field(..., description="Working directory for the CLI")
    state: SessionState = SessionState.IDLE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


__all__ = ["ConversationSession", "SessionState", "utc_now"]
