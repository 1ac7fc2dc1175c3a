"""Execution requests and Claude CLI argument construction."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

# Joins allowlist entries for --allowedTools
TOOL_DELIMITER = ","


class ExecutionRequest(BaseModel):
    """One invocation of the Claude CLI.

    Built per call and never persisted. ``session_id`` is the resume token
    returned by the previous execution in the same conversation.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Prompt passed with -p")
    session_id: str | None = Field(default=None, description="Resume token for --resume")
    working_directory: str | None = Field(default=None, description="Child process cwd")
    allowed_tools: tuple[str, ...] = Field(
        default=(),
        description="Request-specific tool allowlist (falls back to the global default)",
    )
    system_prompt: str | None = None
    model: str | None = None
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Deadline override; executors apply their own default when unset",
    )


def effective_allowed_tools(
    request: ExecutionRequest,
    default_tools: Sequence[str] = (),
) -> tuple[str, ...]:
    """Return the request allowlist, or the global default when it is empty."""
    if request.allowed_tools:
        return tuple(request.allowed_tools)
    return tuple(default_tools)


def build_claude_args(
    request: ExecutionRequest,
    *,
    streaming: bool = False,
    default_tools: Sequence[str] = (),
) -> list[str]:
    """Build the Claude CLI argument list for a request.

    Args:
        request: The execution request.
        streaming: Emit ``stream-json`` output (requires ``--verbose`` with -p).
        default_tools: Global allowlist used when the request has none.

    Returns:
        Arguments to pass after the executable name.
    """
    args = ["-p", request.prompt]

    if streaming:
        args.extend(["--output-format", "stream-json", "--verbose"])
    else:
        args.extend(["--output-format", "json"])

    # Trust comes from the allowlist, never from interactive prompts
    args.append("--dangerously-skip-permissions")

    if request.session_id:
        args.extend(["--resume", request.session_id])

    tools = effective_allowed_tools(request, default_tools)
    if tools:
        args.extend(["--allowedTools", TOOL_DELIMITER.join(tools)])

    if request.system_prompt:
        args.extend(["--system-prompt", request.system_prompt])

    if request.model:
        args.extend(["--model", request.model])

    return args


def redact_args(args: Sequence[str]) -> list[str]:
    """Replace prompt and system prompt values with their lengths for logging."""
    redacted: list[str] = []
    hide_next = False
    for arg in args:
        if hide_next:
            redacted.append(f"<{len(arg)} chars>")
            hide_next = False
            continue
        redacted.append(arg)
        hide_next = arg in ("-p", "--system-prompt")
    return redacted


__all__ = [
    "TOOL_DELIMITER",
    "ExecutionRequest",
    "build_claude_args",
    "effective_allowed_tools",
    "redact_args",
]
