"""Streaming Claude CLI execution.

Runs ``claude -p <prompt> --output-format stream-json --verbose`` and folds
each stdout line into a :class:`StreamBuffer` as it arrives. Partial content
is pushed to an optional async callback, throttled by
:func:`calculate_update_interval`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from disclaude.claude.process import decode_output, spawn_claude, terminate_process
from disclaude.claude.request import ExecutionRequest, build_claude_args, redact_args
from disclaude.claude.stream_parser import (
    StreamBuffer,
    StreamEventType,
    parse_stream_line,
    update_buffer,
)
from disclaude.claude.throttle import should_update
from disclaude.exceptions import ClaudeTimeoutError, StreamError
from disclaude.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

StreamUpdateCallback = Callable[[str], Awaitable[None]]

# stream-json lines carry whole tool results, well past asyncio's 64KiB default
STREAM_LINE_LIMIT = 16 * 1024 * 1024

_STDERR_MAX = 2000


@dataclass(frozen=True)
class StreamResult:
    """Outcome of a streaming run.

    Attributes:
        content: Full assistant text.
        session_id: Resume token, or None when no result event arrived.
    """

    content: str
    session_id: str | None


class StreamingBridge:
    """Runs the Claude CLI in streaming mode.

    Usage:
        bridge = StreamingBridge()

        async def on_update(content: str) -> None:
            await message.edit(content=content[:2000])

        result = await bridge.execute_streaming(request, on_update)
    """

    def __init__(
        self,
        executable: str | None = None,
        default_tools: Sequence[str] | None = None,
        default_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the bridge.

        Args:
            executable: CLI name or path (default: settings.claude_executable)
            default_tools: Allowlist used when a request has none
                (default: settings.claude_allowed_tools)
            default_timeout: Deadline in seconds when a request has none
                (default: settings.claude_stream_timeout_seconds)
            clock: Monotonic clock in seconds, used for update throttling
        """
        settings = get_settings()
        self.executable = executable or settings.claude_executable
        self.default_tools = tuple(
            settings.claude_allowed_tools if default_tools is None else default_tools
        )
        self.default_timeout = default_timeout or settings.claude_stream_timeout_seconds
        self._clock = clock

    async def execute_streaming(
        self,
        request: ExecutionRequest,
        on_update: StreamUpdateCallback | None = None,
    ) -> StreamResult:
        """Run one request, streaming partial content to ``on_update``.

        ``on_update`` always receives the full content so far, never a delta.
        After a normal finish it is called once more with the final content
        (when non-empty), even if throttling skipped the last partial update.

        Raises:
            ClaudeTimeoutError: Deadline exceeded (the child is killed)
            StreamError: Spawn failure, unreadable output or non-zero exit
        """
        args = build_claude_args(request, streaming=True, default_tools=self.default_tools)
        timeout = request.timeout_seconds or self.default_timeout

        logger.info("Running streaming: %s %s", self.executable, " ".join(redact_args(args)))

        try:
            process = await spawn_claude(
                self.executable,
                args,
                request.working_directory,
                limit=STREAM_LINE_LIMIT,
            )
        except OSError as e:
            raise StreamError(f"Streaming failed: {e}") from e

        try:
            buffer, returncode, stderr_bytes = await asyncio.wait_for(
                self._run(process, on_update),
                timeout=timeout,
            )
        except TimeoutError:
            await terminate_process(process)
            logger.warning("Streaming timed out after %ss", timeout)
            raise ClaudeTimeoutError(f"Streaming timed out after {timeout}s") from None
        except ValueError as e:
            # Raised by StreamReader when a line exceeds the limit
            await terminate_process(process)
            raise StreamError(f"Streaming failed: {e}") from e
        except asyncio.CancelledError:
            await terminate_process(process)
            raise

        if returncode != 0:
            stderr = decode_output(stderr_bytes)[:_STDERR_MAX]
            logger.warning("Streaming CLI exited with %s", returncode)
            raise StreamError(
                f"Streaming failed: Claude CLI exited with status {returncode}",
                exit_code=returncode,
                stderr=stderr or None,
            )

        if not buffer.is_complete:
            logger.info("Stream ended without a result event; no resume token")

        if on_update and buffer.content:
            await self._notify(on_update, buffer.content)

        logger.info("Streaming complete: %d chars", len(buffer.content))
        return StreamResult(content=buffer.content, session_id=buffer.session_id)

    async def _run(
        self,
        process: asyncio.subprocess.Process,
        on_update: StreamUpdateCallback | None,
    ) -> tuple[StreamBuffer, int, bytes]:
        """Collect stdout, the exit status and stderr as one deadline-bound unit.

        A grandchild that inherited stderr can keep the pipe open after the CLI
        exits, so the stderr read ends with the run rather than outliving it.
        """
        # stderr is drained alongside stdout
        stderr_task = asyncio.create_task(process.stderr.read())
        try:
            buffer = await self._consume(process, on_update)
            returncode = await process.wait()
            stderr_bytes = await stderr_task
        finally:
            if not stderr_task.done():
                stderr_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task
        return buffer, returncode, stderr_bytes

    async def _consume(
        self,
        process: asyncio.subprocess.Process,
        on_update: StreamUpdateCallback | None,
    ) -> StreamBuffer:
        """Read stdout line by line until EOF."""
        buffer = StreamBuffer()
        last_update_ms: float | None = None

        async for raw_line in process.stdout:
            event = parse_stream_line(decode_output(raw_line))
            if event is None:
                continue

            buffer = update_buffer(buffer, event)

            if on_update is None or event.type is not StreamEventType.ASSISTANT or not event.text:
                continue

            now_ms = self._clock() * 1000
            elapsed_ms = float("inf") if last_update_ms is None else now_ms - last_update_ms
            if should_update(elapsed_ms, len(buffer.content)):
                last_update_ms = now_ms
                await self._notify(on_update, buffer.content)

        return buffer

    @staticmethod
    async def _notify(on_update: StreamUpdateCallback, content: str) -> None:
        try:
            await on_update(content)
        except Exception:
            logger.exception("Stream update callback failed")


__all__ = [
    "STREAM_LINE_LIMIT",
    "StreamResult",
    "StreamUpdateCallback",
    "StreamingBridge",
]
