"""One-shot Claude CLI execution.

Runs ``claude -p <prompt> --output-format json`` with an empty stdin, waits
for the single JSON document on stdout and validates it into a
:class:`ClaudeResponse`.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from disclaude.claude.request import ExecutionRequest, build_claude_args, redact_args
from disclaude.claude.schema import ClaudeResponse
from disclaude.exceptions import (
    ClaudeParseError,
    ClaudeProcessError,
    ClaudeReportedError,
    ClaudeSchemaError,
    ClaudeTimeoutError,
)
from disclaude.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

# Truncation limit for stderr carried on errors
_STDERR_MAX = 2000


async def spawn_claude(
    executable: str,
    args: Sequence[str],
    working_directory: str | None,
    *,
    limit: int | None = None,
) -> asyncio.subprocess.Process:
    """Start the CLI with stdin closed so interactive prompts cannot block it.

    The environment is inherited from the current process. ``limit`` sets
    the maximum line length readable from stdout.
    """
    kwargs = {"limit": limit} if limit else {}
    return await asyncio.create_subprocess_exec(
        executable,
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=working_directory,
        **kwargs,
    )


async def terminate_process(process: asyncio.subprocess.Process) -> None:
    """Kill a child process and reap it."""
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()


def decode_output(payload: bytes | None) -> str:
    if not payload:
        return ""
    return payload.decode("utf-8", errors="replace")


class ClaudeProcess:
    """Runs the Claude CLI in one-shot JSON mode.

    Usage:
        claude = ClaudeProcess()
        response = await claude.execute(ExecutionRequest(prompt="hello"))
        print(response.result, response.session_id)
    """

    def __init__(
        self,
        executable: str | None = None,
        default_tools: Sequence[str] | None = None,
        default_timeout: float | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            executable: CLI name or path (default: settings.claude_executable)
            default_tools: Allowlist used when a request has none
                (default: settings.claude_allowed_tools)
            default_timeout: Deadline in seconds when a request has none
                (default: settings.claude_timeout_seconds)
        """
        settings = get_settings()
        self.executable = executable or settings.claude_executable
        self.default_tools = tuple(
            settings.claude_allowed_tools if default_tools is None else default_tools
        )
        self.default_timeout = default_timeout or settings.claude_timeout_seconds

    async def execute(self, request: ExecutionRequest) -> ClaudeResponse:
        """Run one request to completion.

        Args:
            request: Prompt, resume token, working directory and options

        Returns:
            The validated response

        Raises:
            ClaudeTimeoutError: Deadline exceeded (the child is killed)
            ClaudeProcessError: Spawn failure or non-zero exit
            ClaudeParseError: Output is not JSON
            ClaudeSchemaError: Output JSON has the wrong shape
            ClaudeReportedError: Response has ``is_error`` set
        """
        args = build_claude_args(request, default_tools=self.default_tools)
        timeout = request.timeout_seconds or self.default_timeout

        logger.info("Running: %s %s", self.executable, " ".join(redact_args(args)))
        logger.info("Working directory: %s", request.working_directory or "default")

        try:
            process = await spawn_claude(self.executable, args, request.working_directory)
        except OSError as e:
            raise ClaudeProcessError(f"Failed to execute Claude CLI: {e}") from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout,
            )
        except TimeoutError:
            await terminate_process(process)
            logger.warning("Claude CLI timed out after %ss", timeout)
            raise ClaudeTimeoutError(f"Claude CLI timed out after {timeout}s") from None
        except asyncio.CancelledError:
            await terminate_process(process)
            raise

        stdout = decode_output(stdout_bytes)
        stderr = decode_output(stderr_bytes)[:_STDERR_MAX]

        if process.returncode != 0:
            logger.warning("Claude CLI exited with %s", process.returncode)
            raise ClaudeProcessError(
                f"Claude CLI exited with status {process.returncode}",
                exit_code=process.returncode,
                stderr=stderr or None,
            )

        logger.info("Claude CLI returned %d bytes", len(stdout))
        return parse_response(stdout)


def parse_response(output: str) -> ClaudeResponse:
    """Decode and validate the CLI's JSON document.

    Raises:
        ClaudeParseError: Output is not JSON
        ClaudeSchemaError: Output JSON has the wrong shape
        ClaudeReportedError: Response has ``is_error`` set
    """
    try:
        parsed = json.loads(output)
    except json.JSONDecodeError as e:
        raise ClaudeParseError(f"Failed to parse Claude response: {e}") from e

    try:
        response = ClaudeResponse.model_validate(parsed)
    except ValidationError as e:
        raise ClaudeSchemaError(
            f"Invalid Claude response format: {e.error_count()} validation error(s)"
        ) from e

    if response.is_error:
        raise ClaudeReportedError(response.result)

    return response


__all__ = [
    "ClaudeProcess",
    "decode_output",
    "parse_response",
    "spawn_claude",
    "terminate_process",
]
