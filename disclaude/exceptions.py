"""Disclaude exception hierarchy.

Base exceptions for all layers with correlation ID support.

Usage:
    from disclaude.exceptions import ClaudeExecutionError, SessionNotFoundError

    try:
        response = await claude.execute(request)
    except ClaudeExecutionError as e:
        logger.error("Claude failed (%s) [%s]", e.kind, e.correlation_id)
"""

import uuid


class DisclaudeError(Exception):
    """Base exception for all Disclaude errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ClaudeExecutionError(DisclaudeError):
    """Errors from running the Claude CLI.

    ``kind`` is a stable tag callers can branch on without isinstance checks.
    """

    kind = "execution_error"

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        stderr: str | None = None,
        **kwargs,
    ):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message, **kwargs)


class ClaudeTimeoutError(ClaudeExecutionError):
    """The CLI did not finish before its deadline. The child has been killed."""

    kind = "timeout"


class ClaudeProcessError(ClaudeExecutionError):
    """The CLI could not be spawned or exited with a non-zero status."""

    kind = "process_error"


class ClaudeParseError(ClaudeExecutionError):
    """Captured output was not valid JSON."""

    kind = "parse_error"


class ClaudeSchemaError(ClaudeExecutionError):
    """Output was JSON but did not match the expected response shape."""

    kind = "schema_error"


class ClaudeReportedError(ClaudeExecutionError):
    """The CLI returned a well-formed response with ``is_error`` set."""

    kind = "claude_error"


class StreamError(ClaudeExecutionError):
    """The streaming CLI could not be spawned or exited with a non-zero status."""

    kind = "stream_error"


class SessionNotFoundError(DisclaudeError):
    """No session exists for the conversation."""

    def __init__(self, conversation_id: str, **kwargs):
        self.conversation_id = conversation_id
        super().__init__(f"No session for conversation {conversation_id}", **kwargs)


class ConfigurationError(DisclaudeError):
    """Errors from application configuration."""

    pass


def describe_error(error: BaseException) -> str:
    """Render an error as text suitable for showing to a chat user."""
    if isinstance(error, ClaudeTimeoutError):
        return f"Claude took too long to respond: {error}"
    if isinstance(error, ClaudeReportedError):
        return f"Claude reported an error: {error}"
    if isinstance(error, ClaudeExecutionError):
        return f"Claude failed ({error.kind}): {error}"
    if isinstance(error, SessionNotFoundError):
        return "There is no active session for this channel."
    if isinstance(error, DisclaudeError):
        return f"Error: {error}"
    return "Something went wrong while talking to Claude."
