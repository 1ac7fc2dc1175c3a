"""Unit tests for disclaude/claude/process.py.

All process execution is mocked.
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from disclaude.claude.process import ClaudeProcess, decode_output, parse_response
from disclaude.claude.request import ExecutionRequest
from disclaude.exceptions import (
    ClaudeParseError,
    ClaudeProcessError,
    ClaudeReportedError,
    ClaudeSchemaError,
    ClaudeTimeoutError,
)
from tests.helpers.fake_process import (
    make_batch_process,
    make_hanging_process,
    make_response_payload,
)


class TestClaudeProcessInit:
    def test_defaults_from_settings(self):
        claude = ClaudeProcess()
        assert claude.executable == "claude"
        assert claude.default_tools == ()
        assert claude.default_timeout == 120.0

    def test_overrides(self):
        claude = ClaudeProcess(
            executable="/opt/claude",
            default_tools=["Read"],
            default_timeout=5,
        )
        assert claude.executable == "/opt/claude"
        assert claude.default_tools == ("Read",)
        assert claude.default_timeout == 5

    def test_allowlist_from_environment(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_ALLOWED_TOOLS", "Read, Bash")
        assert ClaudeProcess().default_tools == ("Read", "Bash")


class TestClaudeProcessExecute:
    async def test_success(self):
        process = make_batch_process(json.dumps(make_response_payload()))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            response = await ClaudeProcess().execute(ExecutionRequest(prompt="hello"))

        assert response.result == "Done."
        assert response.session_id == "sess-123"

    async def test_spawn_arguments(self):
        process = make_batch_process(json.dumps(make_response_payload()))
        request = ExecutionRequest(prompt="hello", session_id="s1", working_directory="/work")

        with patch(
            "asyncio.create_subprocess_exec", AsyncMock(return_value=process)
        ) as mock_exec:
            await ClaudeProcess(executable="claude").execute(request)

        args = mock_exec.call_args.args
        kwargs = mock_exec.call_args.kwargs
        assert args[0] == "claude"
        assert list(args[1:3]) == ["-p", "hello"]
        assert "--resume" in args
        assert kwargs["stdin"] == asyncio.subprocess.DEVNULL
        assert kwargs["stdout"] == asyncio.subprocess.PIPE
        assert kwargs["cwd"] == "/work"

    async def test_spawn_failure(self):
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("claude not found")),
        ):
            with pytest.raises(ClaudeProcessError, match="Failed to execute"):
                await ClaudeProcess().execute(ExecutionRequest(prompt="hello"))

    async def test_nonzero_exit(self):
        process = make_batch_process(b"", stderr=b"auth required", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ClaudeProcessError) as exc_info:
                await ClaudeProcess().execute(ExecutionRequest(prompt="hello"))

        assert exc_info.value.exit_code == 1
        assert exc_info.value.stderr == "auth required"
        assert exc_info.value.kind == "process_error"

    async def test_invalid_json(self):
        process = make_batch_process(b"not json at all")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ClaudeParseError):
                await ClaudeProcess().execute(ExecutionRequest(prompt="hello"))

    async def test_is_error_response(self):
        payload = make_response_payload(is_error=True, result="Credit balance too low")
        process = make_batch_process(json.dumps(payload))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ClaudeReportedError, match="Credit balance too low"):
                await ClaudeProcess().execute(ExecutionRequest(prompt="hello"))

    async def test_timeout_kills_child(self):
        process = make_hanging_process()
        request = ExecutionRequest(prompt="hello", timeout_seconds=0.05)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ClaudeTimeoutError):
                await ClaudeProcess().execute(request)

        process.kill.assert_called_once()
        process.wait.assert_awaited()

    async def test_default_timeout_applies(self):
        process = make_hanging_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ClaudeTimeoutError, match="0.05s"):
                await ClaudeProcess(default_timeout=0.05).execute(ExecutionRequest(prompt="x"))

    async def test_stderr_is_truncated(self):
        process = make_batch_process(b"", stderr=b"e" * 5000, returncode=2)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ClaudeProcessError) as exc_info:
                await ClaudeProcess().execute(ExecutionRequest(prompt="hello"))

        assert len(exc_info.value.stderr) == 2000


class TestParseResponse:
    def test_valid(self):
        response = parse_response(json.dumps(make_response_payload(result="ok")))
        assert response.result == "ok"

    def test_schema_mismatch(self):
        with pytest.raises(ClaudeSchemaError, match="validation error"):
            parse_response(json.dumps({"type": "result", "result": 42}))

    def test_not_an_object(self):
        with pytest.raises(ClaudeSchemaError):
            parse_response("[1, 2, 3]")

    def test_empty_output(self):
        with pytest.raises(ClaudeParseError):
            parse_response("")


class TestDecodeOutput:
    def test_none_and_empty(self):
        assert decode_output(None) == ""
        assert decode_output(b"") == ""

    def test_invalid_utf8_is_replaced(self):
        assert decode_output(b"ok\xff") == "ok\ufffd"


class TestClaudeProcessCancellation:
    async def test_cancel_kills_child(self):
        process = make_hanging_process()

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            task = asyncio.create_task(ClaudeProcess().execute(ExecutionRequest(prompt="hi")))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        process.kill.assert_called_once()
        process.wait.assert_awaited()
