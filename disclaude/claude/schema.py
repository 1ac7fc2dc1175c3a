"""Pydantic models for the Claude CLI ``--output-format json`` document."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ServerToolUse(BaseModel):
    """Server-side tool counters."""

    web_search_requests: int | None = None
    web_fetch_requests: int | None = None


class ClaudeUsage(BaseModel):
    """Token usage statistics."""

    input_tokens: int
    output_tokens: int
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None
    server_tool_use: ServerToolUse | None = None
    service_tier: str | None = None


class ModelUsageEntry(BaseModel):
    """Per-model usage, keyed by model id in ``modelUsage``."""

    model_config = ConfigDict(populate_by_name=True)

    input_tokens: int = Field(..., alias="inputTokens")
    output_tokens: int = Field(..., alias="outputTokens")
    cache_read_input_tokens: int | None = Field(default=None, alias="cacheReadInputTokens")
    cache_creation_input_tokens: int | None = Field(
        default=None, alias="cacheCreationInputTokens"
    )
    web_search_requests: int | None = Field(default=None, alias="webSearchRequests")
    cost_usd: float = Field(..., alias="costUSD")
    context_window: int = Field(..., alias="contextWindow")


class ClaudeResponse(BaseModel):
    """Validated one-shot response from the Claude CLI.

    This is the execution result handed back to callers: ``result`` is the
    reply text and ``session_id`` the new resume token.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["result"]
    subtype: str
    is_error: bool
    duration_ms: float
    duration_api_ms: float | None = None
    num_turns: int
    result: str
    session_id: str
    total_cost_usd: float
    usage: ClaudeUsage
    model_usage: dict[str, ModelUsageEntry] | None = Field(default=None, alias="modelUsage")
    permission_denials: list[Any] | None = None
    uuid: str

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens, cache traffic excluded."""
        return self.usage.input_tokens + self.usage.output_tokens


# Alias used by callers that only care about the outcome of an execution
ExecutionResult = ClaudeResponse


__all__ = [
    "ClaudeResponse",
    "ClaudeUsage",
    "ExecutionResult",
    "ModelUsageEntry",
    "ServerToolUse",
]
